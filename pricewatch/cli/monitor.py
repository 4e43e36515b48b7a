"""Alert engine commands for PriceWatch CLI.

Runs reconciliation cycles once (``check``) or on a schedule
(``monitor``), and writes the initial configuration (``init``).
"""

import signal
import threading
from pathlib import Path
from typing import Any

import click
from rich.panel import Panel
from rich.table import Table

from pricewatch.cli.common import console, fail, get_config, get_data_store
from pricewatch.config import DEFAULT_CONFIG_PATH, create_template_config
from pricewatch.db.store import DataStore
from pricewatch.directory import StoreUserDirectory
from pricewatch.engine import CycleRun, Reconciler, Scheduler, TriggerSource
from pricewatch.errors import ConfigError
from pricewatch.logs import configure_logging
from pricewatch.models import RunSummary
from pricewatch.notifiers import BaseNotifier, ConsoleNotifier, EmailNotifier
from pricewatch.quotes import BaseQuoteProvider, FinnhubQuoteProvider, StaticQuoteProvider


def build_quote_provider(config: dict[str, Any]) -> BaseQuoteProvider:
    """Create the quote provider named in the configuration."""
    quotes = config["quotes"]
    if quotes["provider"] == "static":
        return StaticQuoteProvider(quotes.get("static") or {})
    return FinnhubQuoteProvider(
        api_key=quotes["api_key"],
        base_url=quotes["base_url"],
        timeout=float(quotes["timeout_seconds"]),
    )


def build_notifier(config: dict[str, Any]) -> BaseNotifier:
    """Create the notifier named in the configuration."""
    settings = config["notifications"]
    if settings["channel"] == "console":
        return ConsoleNotifier(console=console)
    return EmailNotifier(
        smtp_server=settings["smtp_server"] or None,
        smtp_port=int(settings["smtp_port"]),
        smtp_username=settings["smtp_username"] or None,
        smtp_password=settings["smtp_password"] or None,
        from_address=settings["from_address"] or None,
        from_name=settings["from_name"],
        use_tls=bool(settings["use_tls"]),
    )


def build_reconciler(config: dict[str, Any], store: DataStore) -> Reconciler:
    """Wire a reconciler from the configuration."""
    settings = config["reconciler"]
    return Reconciler(
        store,
        build_quote_provider(config),
        StoreUserDirectory(store),
        build_notifier(config),
        max_workers=int(settings["max_workers"]),
        call_timeout=float(settings["call_timeout_seconds"]),
        resolve_before_transition=bool(settings["resolve_before_transition"]),
    )


def build_scheduler(
    config: dict[str, Any],
    reconciler: Reconciler,
    interval_seconds: float | None = None,
    on_complete=None,
) -> Scheduler:
    """Wire a scheduler from the configuration."""
    settings = config["scheduler"]
    return Scheduler(
        reconciler,
        interval_seconds=interval_seconds or float(settings["interval_seconds"]),
        max_retries=int(settings["max_retries"]),
        retry_delay_seconds=float(settings["retry_delay_seconds"]),
        on_complete=on_complete,
    )


def _setup_logging(config: dict[str, Any], verbose: bool) -> None:
    settings = config["logging"]
    configure_logging(
        level="DEBUG" if verbose else settings["level"],
        log_file=Path(settings["file"]) if settings["file"] else None,
    )


def render_summary(summary: RunSummary) -> None:
    """Print a run summary and its per-item errors."""
    table = Table(title="Cycle Summary", show_header=False, box=None)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Alerts checked", str(summary.alerts_checked))
    table.add_row("Symbols checked", str(summary.symbols_checked))
    table.add_row("Alerts triggered", str(summary.alerts_triggered))
    table.add_row("Notifications sent", f"[green]{summary.notifications_sent}[/green]")
    failed_style = "red" if summary.notifications_failed else "dim"
    table.add_row(
        "Notifications failed",
        f"[{failed_style}]{summary.notifications_failed}[/{failed_style}]",
    )
    console.print(table)

    if summary.errors:
        errors = Table(title="Errors", show_header=True, header_style="bold red")
        errors.add_column("Stage")
        errors.add_column("Symbol", style="bold")
        errors.add_column("Alert", style="dim")
        errors.add_column("Message")
        for error in summary.errors:
            errors.add_row(
                error.stage,
                error.symbol,
                str(error.alert_id) if error.alert_id is not None else "-",
                error.message,
            )
        console.print(errors)

    console.print(f"[dim]{summary.message}[/dim]")


def _print_run_line(run: CycleRun) -> None:
    stamp = run.finished_at.strftime("%H:%M:%S")
    if run.ok:
        summary = run.summary
        color = "yellow" if summary.errors else "green"
        console.print(
            f"[dim]{stamp}[/dim] [{color}]{run.source.value}[/{color}] {summary.message}"
            + (f" ({len(summary.errors)} errors)" if summary.errors else "")
        )
    else:
        console.print(
            f"[dim]{stamp}[/dim] [red]{run.source.value} failed after "
            f"{run.attempts} attempts: {run.error}[/red]"
        )


@click.command("init")
@click.option(
    "--path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Where to write the config (default: {DEFAULT_CONFIG_PATH}).",
)
@click.pass_context
def init_config(ctx: click.Context, path: Path | None) -> None:
    """Write a template configuration file."""
    target = path or (ctx.obj or {}).get("config_path")
    try:
        written = create_template_config(target)
    except ConfigError as e:
        fail("Cannot create config", e)

    console.print(Panel(
        f"[bold green]Config written[/bold green]\n\n{written}\n\n"
        "[dim]Set your Finnhub API key and SMTP settings, or switch to\n"
        "provider = \"static\" and channel = \"console\" for a dry run.[/dim]",
        title="[bold]PriceWatch[/bold]",
        border_style="green",
    ))


@click.command("check")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def check_alerts(ctx: click.Context, verbose: bool) -> None:
    """Run one alert check now.

    Loads active alerts, fetches quotes, fires alerts whose condition
    holds and sends notifications.
    """
    try:
        config = get_config(ctx)
        _setup_logging(config, verbose)
        store = get_data_store(ctx)
        scheduler = build_scheduler(config, build_reconciler(config, store))
    except Exception as e:
        fail("Failed to start alert check", e)

    run = scheduler.fire(TriggerSource.MANUAL)
    if not run.ok:
        fail(f"Alert check failed after {run.attempts} attempts", run.error)
    render_summary(run.summary)


@click.command("monitor")
@click.option(
    "--interval", type=float, default=None,
    help="Seconds between checks (default from config, 300).",
)
@click.option("--max-cycles", type=int, default=None, hidden=True)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def monitor(
    ctx: click.Context,
    interval: float | None,
    max_cycles: int | None,
    verbose: bool,
) -> None:
    """Check alerts on a schedule until interrupted.

    Press Ctrl+C to stop. Send SIGUSR1 to run an extra check immediately.
    """
    try:
        config = get_config(ctx)
        _setup_logging(config, verbose)
        store = get_data_store(ctx)
        scheduler = build_scheduler(
            config,
            build_reconciler(config, store),
            interval_seconds=interval,
            on_complete=_print_run_line,
        )
    except Exception as e:
        fail("Failed to start monitor", e)

    if hasattr(signal, "SIGUSR1") and threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGUSR1, lambda signum, frame: scheduler.request_run())

    console.print(Panel(
        f"Checking alerts every {scheduler.interval_seconds:g}s\n"
        "[dim]Ctrl+C to stop[/dim]",
        title="[bold]PriceWatch Monitor[/bold]",
        border_style="cyan",
    ))

    stop = threading.Event()
    try:
        scheduler.run_forever(stop_event=stop, max_cycles=max_cycles)
    except KeyboardInterrupt:
        stop.set()
        console.print("\n[dim]Monitor stopped[/dim]")
