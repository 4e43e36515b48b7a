"""Notification dispatchers for PriceWatch."""

from pricewatch.notifiers.base import BaseNotifier, format_change_percent, format_price
from pricewatch.notifiers.console import ConsoleNotifier
from pricewatch.notifiers.email import EmailNotifier

__all__ = [
    "BaseNotifier",
    "ConsoleNotifier",
    "EmailNotifier",
    "format_change_percent",
    "format_price",
]
