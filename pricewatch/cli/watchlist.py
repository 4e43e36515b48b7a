"""Watchlist management commands for PriceWatch CLI.

Each user has one watchlist; a symbol appears on it at most once.
"""

import click
from rich.table import Table

from pricewatch.cli.common import USER_OPTION_HELP, console, fail, get_config, get_data_store
from pricewatch.errors import QuoteUnavailableError
from pricewatch.notifiers.base import format_change_percent, format_price


@click.group()
def watch() -> None:
    """Manage your watchlist.

    \b
    Examples:
      pricewatch watch add AAPL --user alice --company "Apple Inc"
      pricewatch watch list --user alice --quotes
      pricewatch watch remove AAPL --user alice
    """
    pass


@watch.command("add")
@click.argument("symbol")
@click.option("--user", "user_id", envvar="PRICEWATCH_USER", required=True, help=USER_OPTION_HELP)
@click.option("--company", default=None, help="Company name (defaults to SYMBOL).")
@click.pass_context
def add_symbol(ctx: click.Context, symbol: str, user_id: str, company: str | None) -> None:
    """Add a symbol to your watchlist."""
    symbol = symbol.strip().upper()
    if not symbol:
        fail("Invalid symbol", "SYMBOL must not be empty")

    try:
        added = get_data_store(ctx).add_to_watchlist(user_id, symbol, company or symbol)
    except Exception as e:
        fail("Failed to add symbol", e)

    if added:
        console.print(f"[green]✓ Added {symbol} to your watchlist[/green]")
    else:
        console.print(f"[yellow]{symbol} is already in your watchlist[/yellow]")


@watch.command("remove")
@click.argument("symbol")
@click.option("--user", "user_id", envvar="PRICEWATCH_USER", required=True, help=USER_OPTION_HELP)
@click.pass_context
def remove_symbol(ctx: click.Context, symbol: str, user_id: str) -> None:
    """Remove a symbol from your watchlist."""
    symbol = symbol.strip().upper()
    try:
        removed = get_data_store(ctx).remove_from_watchlist(user_id, symbol)
    except Exception as e:
        fail("Failed to remove symbol", e)

    if removed:
        console.print(f"[green]✓ Removed {symbol} from your watchlist[/green]")
    else:
        console.print(f"[yellow]{symbol} is not in your watchlist[/yellow]")


@watch.command("list")
@click.option("--user", "user_id", envvar="PRICEWATCH_USER", required=True, help=USER_OPTION_HELP)
@click.option("--quotes", "with_quotes", is_flag=True, help="Fetch current prices.")
@click.pass_context
def list_symbols(ctx: click.Context, user_id: str, with_quotes: bool) -> None:
    """Show your watchlist."""
    try:
        items = get_data_store(ctx).get_watchlist(user_id)
    except Exception as e:
        fail("Failed to load watchlist", e)

    if not items:
        console.print("[dim]Your watchlist is empty. Use 'pricewatch watch add SYMBOL'.[/dim]")
        return

    provider = None
    if with_quotes:
        from pricewatch.cli.monitor import build_quote_provider

        provider = build_quote_provider(get_config(ctx))

    table = Table(title="Watchlist", show_header=True, header_style="bold cyan")
    table.add_column("Symbol", style="bold")
    table.add_column("Company")
    if provider is not None:
        table.add_column("Price", justify="right")
        table.add_column("Change", justify="right")
    table.add_column("Added", style="dim")

    for item in items:
        row = [item.symbol, item.company]
        if provider is not None:
            try:
                quote = provider.get_quote(item.symbol)
                color = "green" if quote.change_percent >= 0 else "red"
                row += [
                    format_price(quote.price),
                    f"[{color}]{format_change_percent(quote.change_percent)}[/{color}]",
                ]
            except QuoteUnavailableError:
                row += ["[dim]-[/dim]", "[dim]-[/dim]"]
        row.append(item.added_at.strftime("%Y-%m-%d"))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n[dim]Total: {len(items)} symbols[/dim]")
