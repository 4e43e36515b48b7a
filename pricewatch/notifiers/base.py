"""Base notifier interface and shared formatting helpers."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone

from pricewatch.models import DeliveryResult, PriceAlertNotification


def format_price(value: float) -> str:
    """Format a price as ``$1,234.56``."""
    return f"${value:,.2f}"


def format_change_percent(value: float) -> str:
    """Format a percent change with an explicit sign, e.g. ``+1.23%``."""
    return f"{value:+.2f}%"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in long UTC form, e.g. ``Monday, October 19, 2026 at 02:30 PM UTC``."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).strftime("%A, %B %d, %Y at %I:%M %p UTC")


def format_subject(notification: PriceAlertNotification) -> str:
    """Subject line for a price alert notification."""
    direction = "Above" if notification.condition == "greater" else "Below"
    return (
        f"🔔 {notification.symbol} Price Alert: "
        f"{direction} {format_price(notification.target_price)}"
    )


class BaseNotifier(ABC):
    """Abstract base class for notification dispatchers.

    Implementations report failures through :class:`DeliveryResult`
    rather than raising, and must tolerate concurrent calls.
    """

    @abstractmethod
    def send_price_alert(self, notification: PriceAlertNotification) -> DeliveryResult:
        """Send a triggered price alert to its recipient."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the notifier has everything it needs to send."""
        pass
