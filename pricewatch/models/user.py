"""User data model."""

from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    """A user directory entry used to address notifications."""

    id: str = Field(..., min_length=1, description="User ID")
    email: str = Field(default="", description="Notification address")
    name: str = Field(default="", description="Display name")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")

    model_config = {"frozen": True}
