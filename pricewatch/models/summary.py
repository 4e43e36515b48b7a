"""Run summary models returned by a reconciliation cycle."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

ErrorStage = Literal["quote", "transition", "directory", "delivery"]


class ItemError(BaseModel):
    """A single isolated failure recorded during a cycle."""

    stage: ErrorStage = Field(..., description="Step of the cycle that failed")
    symbol: str = Field(..., description="Symbol being processed")
    alert_id: Optional[int] = Field(default=None, description="Alert involved, if any")
    message: str = Field(..., description="Human readable failure reason")

    model_config = {"frozen": True}


class NotificationOutcome(BaseModel):
    """Delivery outcome for one triggered alert."""

    alert_id: int = Field(..., description="Alert ID")
    symbol: str = Field(..., description="Ticker symbol")
    address: Optional[str] = Field(default=None, description="Resolved address")
    success: bool = Field(..., description="Whether delivery succeeded")
    error: Optional[str] = Field(default=None, description="Failure reason")

    model_config = {"frozen": True}


class RunSummary(BaseModel):
    """Structured outcome of one reconciliation cycle."""

    alerts_checked: int = Field(default=0, ge=0)
    alerts_triggered: int = Field(default=0, ge=0)
    notifications_sent: int = Field(default=0, ge=0)
    notifications_failed: int = Field(default=0, ge=0)
    errors: list[ItemError] = Field(default_factory=list)
    symbols_checked: int = Field(default=0, ge=0)
    outcomes: list[NotificationOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = Field(default=None)

    model_config = {"frozen": True}

    @property
    def message(self) -> str:
        """One-line description of the cycle."""
        if self.alerts_checked == 0:
            return "No active alerts to check"
        if self.alerts_triggered == 0:
            return f"Checked {self.alerts_checked} alerts, none triggered"
        return (
            f"Checked {self.alerts_checked} alerts, triggered {self.alerts_triggered}, "
            f"sent {self.notifications_sent} notifications, "
            f"{self.notifications_failed} failed"
        )
