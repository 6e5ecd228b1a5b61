"""Account-related DTOs shared across services."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, EmailStr


class UserProfile(BaseModel):
    """Redacted user representation; never carries password material."""

    id: str
    email: EmailStr
    name: str
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
