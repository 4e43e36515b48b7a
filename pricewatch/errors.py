"""Exception hierarchy for PriceWatch."""


class PriceWatchError(Exception):
    """Base class for all PriceWatch errors."""


class StoreUnavailableError(PriceWatchError):
    """The alert store could not be reached or queried."""


class QuoteUnavailableError(PriceWatchError):
    """A quote could not be fetched for a symbol."""

    def __init__(self, symbol: str, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Quote unavailable for {symbol}: {reason}")


class UserNotFoundError(PriceWatchError):
    """A user id could not be resolved to a notification address."""

    def __init__(self, user_id: str, reason: str = "User email not found"):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"{reason} (user {user_id})")


class ConfigError(PriceWatchError):
    """Configuration is missing or invalid."""
