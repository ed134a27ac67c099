"""Pydantic schemas for user administration."""

import uuid
from datetime import datetime

from pydantic import BaseModel

from bankcards.models.user import UserRole


class UserResponse(BaseModel):
    """Public representation of a user (never includes the password hash)."""
    id: uuid.UUID
    username: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBalanceResponse(BaseModel):
    """A user together with the total balance of their cards, in roubles."""
    user: UserResponse
    total_balance: float
