"""Data models for PriceWatch."""

from pricewatch.models.alert import VALID_CONDITIONS, Alert, AlertCondition, AlertState
from pricewatch.models.notification import DeliveryResult, PriceAlertNotification
from pricewatch.models.summary import ItemError, NotificationOutcome, RunSummary
from pricewatch.models.user import User
from pricewatch.models.watchlist import WatchlistItem

__all__ = [
    "Alert",
    "AlertCondition",
    "AlertState",
    "VALID_CONDITIONS",
    "DeliveryResult",
    "PriceAlertNotification",
    "ItemError",
    "NotificationOutcome",
    "RunSummary",
    "User",
    "WatchlistItem",
]
