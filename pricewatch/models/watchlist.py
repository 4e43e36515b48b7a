"""WatchlistItem data model."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class WatchlistItem(BaseModel):
    """A symbol on a user's watchlist. Unique per (user, symbol)."""

    user_id: str = Field(..., min_length=1, description="Owner user ID")
    symbol: str = Field(..., min_length=1, description="Ticker symbol")
    company: str = Field(..., min_length=1, description="Display company name")
    added_at: datetime = Field(default_factory=datetime.now, description="When it was added")

    model_config = {"frozen": True}

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return str(value).strip().upper()
