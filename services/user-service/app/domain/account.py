from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class Account:
    """Aggregate root for a registered user."""

    id: str
    email: str
    password_hash: str = field(repr=False)
    name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict[str, Any]:
        """Return the redacted view used for responses, cache entries and events."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def summary(self) -> dict[str, str]:
        """Return the minimal identity block embedded in auth responses."""
        return {"id": self.id, "email": self.email, "name": self.name}
