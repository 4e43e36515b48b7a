"""Alert data model."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

AlertCondition = Literal["greater", "less"]

VALID_CONDITIONS: tuple[str, ...] = ("greater", "less")


class AlertState(str, Enum):
    """Lifecycle state derived from ``is_active`` and ``triggered_at``."""

    ACTIVE = "active"
    TRIGGERED = "triggered"
    PAUSED = "paused"


class Alert(BaseModel):
    """Represents a threshold price alert owned by a single user."""

    id: Optional[int] = Field(default=None, description="Database ID")
    user_id: str = Field(..., min_length=1, description="Owner user ID")
    symbol: str = Field(..., min_length=1, description="Ticker symbol (uppercase)")
    company: str = Field(..., min_length=1, description="Display company name")
    alert_name: str = Field(..., min_length=1, description="Display name of the alert")
    alert_type: Literal["price"] = Field(default="price", description="Alert type")
    condition: AlertCondition = Field(..., description="Trigger condition")
    threshold: float = Field(..., gt=0, description="Target price")
    current_price: float = Field(
        default=0.0, ge=0, description="Price recorded when the alert was created"
    )
    is_active: bool = Field(default=True, description="Whether the alert is armed")
    triggered_at: Optional[datetime] = Field(
        default=None, description="When the alert last fired"
    )
    created_at: datetime = Field(
        default_factory=datetime.now, description="Alert creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now, description="Last modification timestamp"
    )

    model_config = {"frozen": True}

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return str(value).strip().upper()

    @field_validator("company", "alert_name", "user_id", mode="before")
    @classmethod
    def _strip(cls, value: str) -> str:
        return str(value).strip()

    @property
    def state(self) -> AlertState:
        """Conceptual lifecycle state of the alert."""
        if self.is_active:
            return AlertState.ACTIVE
        if self.triggered_at is not None:
            return AlertState.TRIGGERED
        return AlertState.PAUSED
