"""CLI commands for PriceWatch.

This package provides the command-line interface for PriceWatch,
including alert, watchlist and user management and the alert monitor.
"""

from pricewatch.cli.main import cli, main

__all__ = ["cli", "main"]
