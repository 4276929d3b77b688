"""
Pydantic schemas for User-related requests and responses.

hashed_password is NEVER included in any response schema — this is a
critical security boundary.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """Public representation of a User (never includes password hash)."""
    id: uuid.UUID
    username: str
    roles: list[str]
    created_at: datetime

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            roles=sorted(user.role_names),
            created_at=user.created_at,
        )


class UserUpdateRequest(BaseModel):
    """Request body for PATCH /users/{id}. Omitted fields stay unchanged."""
    username: str | None = Field(default=None, min_length=3, max_length=50)


class BalanceResponse(BaseModel):
    """Aggregate balance across all cards a user owns."""
    user_id: uuid.UUID
    total_balance: Decimal
