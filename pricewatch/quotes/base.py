"""Base quote provider interface for PriceWatch."""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, Field


class Quote(BaseModel):
    """Represents a current quote for a symbol."""

    symbol: str = Field(..., description="Ticker symbol")
    price: float = Field(..., gt=0, description="Current price")
    change: float = Field(default=0.0, description="Price change from previous close")
    change_percent: float = Field(default=0.0, description="Percentage change")
    previous_close: float = Field(default=0.0, ge=0, description="Previous close")
    fetched_at: datetime = Field(default_factory=datetime.now, description="Fetch time")

    model_config = {"frozen": True}


class BaseQuoteProvider(ABC):
    """Abstract base class for quote sources.

    Implementations must be safe to call from several threads at once,
    since a cycle fetches distinct symbols concurrently.
    """

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """Get the current quote for a symbol.

        Args:
            symbol: Ticker symbol.

        Returns:
            Quote with the current price and day change.

        Raises:
            QuoteUnavailableError: If no usable quote could be obtained.
        """
        pass
