"""User lifecycle event contracts published by the user service."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UserEventType(str, Enum):
    registered = "USER_REGISTERED"
    logged_in = "USER_LOGGED_IN"


class UserRegistered(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    email: str
    name: str


class UserLoggedIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    email: str


class DomainEvent(BaseModel):
    """Envelope shared by the broker stream and the wallet events endpoint."""

    event: str
    data: dict[str, Any]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
