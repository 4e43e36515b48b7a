"""Notification payload and delivery result models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from pricewatch.models.alert import AlertCondition


class PriceAlertNotification(BaseModel):
    """Everything a dispatcher needs to tell a user their alert fired."""

    address: str = Field(..., min_length=1, description="Recipient address")
    symbol: str = Field(..., description="Ticker symbol")
    company: str = Field(..., description="Company name")
    condition: AlertCondition = Field(..., description="Trigger condition")
    current_price: float = Field(..., description="Price that triggered the alert")
    target_price: float = Field(..., description="Alert threshold")
    change_percent: float = Field(default=0.0, description="Day change in percent")
    timestamp: datetime = Field(default_factory=datetime.now, description="Trigger time")

    model_config = {"frozen": True}


class DeliveryResult(BaseModel):
    """Outcome reported by a notification dispatcher."""

    success: bool = Field(..., description="Whether the notification was sent")
    error: Optional[str] = Field(default=None, description="Failure reason")

    model_config = {"frozen": True}
