"""User directory commands for PriceWatch CLI.

Registers the addresses that triggered alerts are delivered to.
"""

import re

import click
from rich.panel import Panel
from rich.table import Table

from pricewatch.cli.common import console, fail, get_data_store
from pricewatch.models import User

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_email(email: str) -> bool:
    """Check that an address looks like an email address."""
    return bool(EMAIL_PATTERN.match(email.strip()))


@click.command("user")
@click.argument("user_id")
@click.argument("email")
@click.option("--name", default="", help="Display name.")
@click.pass_context
def save_user(ctx: click.Context, user_id: str, email: str, name: str) -> None:
    """Create or update a user.

    USER_ID is the ID alerts are owned by.
    EMAIL is where triggered alerts are sent.

    \b
    Examples:
      pricewatch user alice alice@example.com
      pricewatch user bob bob@example.com --name "Bob Smith"
    """
    if not validate_email(email):
        fail("Invalid email address", email)

    try:
        store = get_data_store(ctx)
        existing = store.get_user(user_id)
        user = User(
            id=user_id.strip(),
            email=email.strip(),
            name=name.strip() or (existing.name if existing else ""),
        )
        store.save_user(user)
    except Exception as e:
        fail("Failed to save user", e)

    verb = "Updated" if existing else "Created"
    console.print(Panel(
        f"[bold green]{verb} user[/bold green]\n\n"
        f"ID:    {user.id}\n"
        f"Email: {user.email}\n"
        f"Name:  {user.name or '-'}",
        title="[bold]User[/bold]",
        border_style="green",
    ))


@click.command("users")
@click.pass_context
def list_users(ctx: click.Context) -> None:
    """List registered users."""
    try:
        users = get_data_store(ctx).get_users()
    except Exception as e:
        fail("Failed to list users", e)

    if not users:
        console.print("[dim]No users. Use 'pricewatch user USER_ID EMAIL' to add one.[/dim]")
        return

    table = Table(title="Users", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold")
    table.add_column("Email")
    table.add_column("Name")
    table.add_column("Created", style="dim")
    for user in users:
        table.add_row(
            user.id, user.email or "[red]missing[/red]", user.name,
            user.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)
