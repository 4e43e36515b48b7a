"""Helpers shared by the CLI command modules."""

from typing import Any

import click
from rich.console import Console
from rich.panel import Panel

from pricewatch.config import get_db_path, load_config
from pricewatch.db.store import DataStore

console = Console()

USER_OPTION_HELP = "User ID (defaults to $PRICEWATCH_USER)."


def get_config(ctx: click.Context) -> dict[str, Any]:
    """Load configuration once per invocation."""
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        obj["config"] = load_config(obj.get("config_path"))
    return obj["config"]


def get_data_store(ctx: click.Context) -> DataStore:
    """Get the data store instance."""
    return DataStore(get_db_path(get_config(ctx)))


def print_error(title: str, error: Exception | str) -> None:
    """Render an error panel."""
    console.print(Panel(
        f"[red]{title}:[/red]\n\n{error}",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))


def fail(title: str, error: Exception | str) -> None:
    """Render an error panel and exit with status 1."""
    print_error(title, error)
    raise SystemExit(1)
