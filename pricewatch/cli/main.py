"""Main CLI entry point for PriceWatch.

Command modules are imported on first use, so ``pricewatch --help`` and
simple commands do not pay for the engine's imports.
"""

import importlib
from pathlib import Path

import click


class LazyGroup(click.Group):
    """A click Group whose subcommands are imported on demand.

    Subcommands are given as ``"package.module:attribute"`` strings.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.lazy_subcommands = dict(lazy_subcommands or {})

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted({*super().list_commands(ctx), *self.lazy_subcommands})

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        command = super().get_command(ctx, cmd_name)
        if command is None and cmd_name in self.lazy_subcommands:
            command = self._import_command(cmd_name)
            self.add_command(command, cmd_name)
        return command

    def _import_command(self, cmd_name: str) -> click.Command:
        target = self.lazy_subcommands[cmd_name]
        module_name, _, attr_name = target.partition(":")
        command = getattr(importlib.import_module(module_name), attr_name, None)
        if not isinstance(command, click.Command):
            raise click.ClickException(f"'{target}' is not a click command")
        return command


LAZY_SUBCOMMANDS = {
    # Setup
    "init": "pricewatch.cli.monitor:init_config",
    "user": "pricewatch.cli.users:save_user",
    "users": "pricewatch.cli.users:list_users",
    # Alerts
    "alert": "pricewatch.cli.alerts:create_alert",
    "alerts": "pricewatch.cli.alerts:list_alerts",
    "edit": "pricewatch.cli.alerts:edit_alert",
    # Watchlist
    "watch": "pricewatch.cli.watchlist:watch",
    # Engine
    "check": "pricewatch.cli.monitor:check_alerts",
    "monitor": "pricewatch.cli.monitor:monitor",
}


@click.group(
    cls=LazyGroup,
    lazy_subcommands=LAZY_SUBCOMMANDS,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="PRICEWATCH_CONFIG",
    help="Path to config.toml (default: ~/.config/pricewatch/config.toml).",
)
@click.version_option(package_name="pricewatch")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """PriceWatch - threshold price alerts for the stocks you follow.

    Register alerts on a symbol and get notified when the live price
    crosses your target.

    \b
    Getting started:
      pricewatch init                                 # Write a config template
      pricewatch user alice alice@example.com         # Register a recipient
      pricewatch alert AAPL greater 200 --user alice  # Create an alert
      pricewatch monitor                              # Check every 5 minutes
    """
    ctx.obj = {"config_path": config_path}


def main() -> None:
    """Run the PriceWatch CLI."""
    cli()
