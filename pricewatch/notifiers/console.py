"""Console notifier that renders alerts with rich."""

import threading

from rich.console import Console
from rich.panel import Panel

from pricewatch.models import DeliveryResult, PriceAlertNotification
from pricewatch.notifiers.base import (
    BaseNotifier,
    format_change_percent,
    format_price,
    format_subject,
    format_timestamp,
)


class ConsoleNotifier(BaseNotifier):
    """Print price alerts to the terminal instead of sending them."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._lock = threading.Lock()
        self.sent: list[PriceAlertNotification] = []

    def send_price_alert(self, notification: PriceAlertNotification) -> DeliveryResult:
        color = "green" if notification.condition == "greater" else "red"
        body = (
            f"[bold]{notification.company}[/bold] ({notification.symbol})\n\n"
            f"To:            {notification.address}\n"
            f"Current price: [{color}]{format_price(notification.current_price)}[/{color}]\n"
            f"Target price:  {format_price(notification.target_price)}\n"
            f"Change:        {format_change_percent(notification.change_percent)}\n"
            f"[dim]{format_timestamp(notification.timestamp)}[/dim]"
        )
        with self._lock:
            self.console.print(Panel(
                body,
                title=f"[bold]{format_subject(notification)}[/bold]",
                border_style=color,
            ))
            self.sent.append(notification)
        return DeliveryResult(success=True)

    def is_configured(self) -> bool:
        return True
