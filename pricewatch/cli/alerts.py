"""Alert management commands for PriceWatch CLI.

Handles creating, listing, editing, pausing, reactivating and removing
price alerts.
"""

import click
from rich.panel import Panel
from rich.table import Table

from pricewatch.cli.common import USER_OPTION_HELP, console, fail, get_config, get_data_store
from pricewatch.errors import QuoteUnavailableError
from pricewatch.models import Alert, AlertState
from pricewatch.notifiers.base import format_price

# Accepted spellings for each condition
CONDITION_ALIASES = {
    "greater": "greater",
    "above": "greater",
    ">": "greater",
    ">=": "greater",
    "less": "less",
    "below": "less",
    "<": "less",
    "<=": "less",
}

CONDITION_LABELS = {
    "greater": "Price ≥",
    "less": "Price ≤",
}


def parse_condition(condition: str) -> str | None:
    """Normalise a condition alias to 'greater' or 'less'.

    Args:
        condition: User supplied condition (e.g. 'above', '>=', 'less').

    Returns:
        The canonical condition, or None if it is not recognised.
    """
    return CONDITION_ALIASES.get(condition.strip().lower())


def describe_alert(alert: Alert) -> str:
    """Short human readable form of an alert's condition."""
    return f"{CONDITION_LABELS[alert.condition]} {format_price(alert.threshold)}"


def _status_markup(alert: Alert) -> str:
    state = alert.state
    if state is AlertState.ACTIVE:
        return "[green]● Active[/green]"
    if state is AlertState.TRIGGERED:
        return f"[yellow]✓ Triggered {alert.triggered_at.strftime('%Y-%m-%d %H:%M')}[/yellow]"
    return "[dim]Paused[/dim]"


def _lookup_price(ctx: click.Context, symbol: str) -> float:
    """Fetch the current price for a new alert, or 0 if unavailable."""
    from pricewatch.cli.monitor import build_quote_provider

    try:
        return build_quote_provider(get_config(ctx)).get_quote(symbol).price
    except QuoteUnavailableError as e:
        console.print(f"[dim]Could not record current price: {e.reason}[/dim]")
        return 0.0


@click.command("alert")
@click.argument("symbol")
@click.argument("condition")
@click.argument("threshold", type=float)
@click.option("--user", "user_id", envvar="PRICEWATCH_USER", required=True, help=USER_OPTION_HELP)
@click.option("--company", default=None, help="Company name (defaults to SYMBOL).")
@click.option("--name", "alert_name", default=None, help="Alert name.")
@click.option(
    "--price", "current_price",
    type=float,
    default=None,
    help="Current price to record (fetched from the quote provider if omitted).",
)
@click.pass_context
def create_alert(
    ctx: click.Context,
    symbol: str,
    condition: str,
    threshold: float,
    user_id: str,
    company: str | None,
    alert_name: str | None,
    current_price: float | None,
) -> None:
    """Create a price alert.

    SYMBOL is the ticker (e.g., AAPL, MSFT).
    CONDITION is 'greater' (or above, >, >=) or 'less' (or below, <, <=).
    THRESHOLD is the target price. Both boundaries are inclusive.

    \b
    Examples:
      pricewatch alert AAPL greater 200 --user alice
      pricewatch alert MSFT below 380 --user alice --name "MSFT dip"
    """
    symbol = symbol.strip().upper()
    canonical = parse_condition(condition)
    if canonical is None:
        fail(
            f"Invalid condition: {condition}",
            "Supported conditions: greater (above, >, >=), less (below, <, <=)",
        )
    if threshold <= 0:
        fail("Invalid threshold", "THRESHOLD must be greater than zero")

    try:
        store = get_data_store(ctx)
        if current_price is None:
            current_price = _lookup_price(ctx, symbol)

        alert = Alert(
            user_id=user_id,
            symbol=symbol,
            company=company or symbol,
            alert_name=alert_name or f"{symbol} {canonical} {threshold:g}",
            condition=canonical,
            threshold=threshold,
            current_price=current_price,
        )
        alert_id = store.save_alert(alert)
    except Exception as e:
        fail("Failed to create alert", e)

    console.print(Panel(
        f"[bold green]Alert Created[/bold green]\n\n"
        f"ID:        {alert_id}\n"
        f"Name:      {alert.alert_name}\n"
        f"Symbol:    {alert.symbol} ({alert.company})\n"
        f"Condition: {describe_alert(alert)}\n"
        f"Recorded:  {format_price(alert.current_price)}",
        title="[bold]New Alert[/bold]",
        border_style="green",
    ))


@click.command("alerts")
@click.option("--user", "user_id", envvar="PRICEWATCH_USER", required=True, help=USER_OPTION_HELP)
@click.option("--remove", "remove_id", type=int, default=None, help="Remove alert with specified ID.")
@click.option(
    "--reactivate", "reactivate_id", type=int, default=None,
    help="Re-arm a triggered alert with specified ID.",
)
@click.option("--pause", "pause_id", type=int, default=None, help="Pause alert with specified ID.")
@click.option("--resume", "resume_id", type=int, default=None, help="Resume a paused alert.")
@click.pass_context
def list_alerts(
    ctx: click.Context,
    user_id: str,
    remove_id: int | None,
    reactivate_id: int | None,
    pause_id: int | None,
    resume_id: int | None,
) -> None:
    """Display or manage alerts.

    Shows all of a user's alerts. Use the options to change one alert.

    \b
    Examples:
      pricewatch alerts --user alice                 # List alerts
      pricewatch alerts --user alice --remove 5      # Delete alert 5
      pricewatch alerts --user alice --reactivate 5  # Re-arm triggered alert 5
      pricewatch alerts --user alice --pause 5       # Stop checking alert 5
    """
    actions = [
        (remove_id, "remove"),
        (reactivate_id, "reactivate"),
        (pause_id, "pause"),
        (resume_id, "resume"),
    ]
    requested = [(alert_id, action) for alert_id, action in actions if alert_id is not None]
    if len(requested) > 1:
        fail("Too many actions", "Use only one of --remove, --reactivate, --pause, --resume")

    try:
        store = get_data_store(ctx)

        if requested:
            alert_id, action = requested[0]
            alert = store.get_alert_by_id(alert_id)
            if alert is None or alert.user_id != user_id:
                console.print(f"[yellow]Alert with ID {alert_id} not found[/yellow]")
                return

            if action == "remove":
                store.delete_alert(alert_id, user_id=user_id)
                message = "Removed"
            elif action == "reactivate":
                store.reactivate(alert_id, user_id=user_id)
                message = "Reactivated"
            elif action == "pause":
                store.set_alert_active(alert_id, False, user_id=user_id)
                message = "Paused"
            else:
                store.set_alert_active(alert_id, True, user_id=user_id)
                message = "Resumed"

            console.print(
                f"[green]✓ {message} alert {alert_id} "
                f"({alert.symbol}: {describe_alert(alert)})[/green]"
            )
            return

        alerts = store.get_alerts(user_id=user_id)
    except Exception as e:
        fail("Failed to manage alerts", e)

    if not alerts:
        console.print(Panel(
            "[dim]No alerts set. Use 'pricewatch alert SYMBOL CONDITION THRESHOLD' to create one.[/dim]",
            title="[bold]Alerts[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title=f"Alerts for {user_id}", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", width=6)
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    table.add_column("Condition")
    table.add_column("Recorded", justify="right")
    table.add_column("Created", style="dim")
    table.add_column("Status")

    for alert in alerts:
        table.add_row(
            str(alert.id),
            alert.symbol,
            alert.alert_name,
            describe_alert(alert),
            format_price(alert.current_price),
            alert.created_at.strftime("%Y-%m-%d %H:%M"),
            _status_markup(alert),
        )

    active = sum(1 for alert in alerts if alert.is_active)
    console.print(table)
    console.print(f"\n[dim]Total: {len(alerts)} alerts, {active} active[/dim]")


@click.command("edit")
@click.argument("alert_id", type=int)
@click.option("--user", "user_id", envvar="PRICEWATCH_USER", required=True, help=USER_OPTION_HELP)
@click.option("--name", "alert_name", default=None, help="New alert name.")
@click.option("--condition", default=None, help="New condition (greater/less).")
@click.option("--threshold", type=float, default=None, help="New target price.")
@click.pass_context
def edit_alert(
    ctx: click.Context,
    alert_id: int,
    user_id: str,
    alert_name: str | None,
    condition: str | None,
    threshold: float | None,
) -> None:
    """Edit an alert's name, condition or threshold.

    \b
    Examples:
      pricewatch edit 5 --user alice --threshold 210
      pricewatch edit 5 --user alice --condition less --threshold 150
    """
    canonical = None
    if condition is not None:
        canonical = parse_condition(condition)
        if canonical is None:
            fail(f"Invalid condition: {condition}", "Use greater or less")
    if threshold is not None and threshold <= 0:
        fail("Invalid threshold", "THRESHOLD must be greater than zero")

    try:
        store = get_data_store(ctx)
        alert = store.get_alert_by_id(alert_id)
        if alert is None or alert.user_id != user_id:
            console.print(f"[yellow]Alert with ID {alert_id} not found[/yellow]")
            return

        store.update_alert(
            alert_id,
            alert_name=alert_name or alert.alert_name,
            condition=canonical or alert.condition,
            threshold=threshold if threshold is not None else alert.threshold,
            user_id=user_id,
        )
        updated = store.get_alert_by_id(alert_id)
    except Exception as e:
        fail("Failed to edit alert", e)

    console.print(
        f"[green]✓ Updated alert {alert_id}: {updated.alert_name} "
        f"({updated.symbol}: {describe_alert(updated)})[/green]"
    )
