"""
Auth models.

User mirrors a row of the users table; Session lives only in the
in-process SessionRegistry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """User record as stored in the credential store."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    password_hash: str
    role: Literal["admin", "user"] = "user"
    remaining_api_calls: int = 0
    created_at: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class Session(BaseModel):
    """Session record (opaque token, fixed expiry)."""

    model_config = ConfigDict(frozen=True)

    token: str
    user_id: int
    email: str
    created_at: datetime
    expires_at: datetime
