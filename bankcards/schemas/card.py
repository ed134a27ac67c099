"""
Pydantic schemas for Card endpoints.

Full card numbers are NEVER returned. Responses carry the masked form
("**** **** **** 4242") only. Balances are presented in roubles as floats;
the stored value is integer kopecks.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from bankcards.models.card import CardStatus


class CardResponse(BaseModel):
    """Public representation of a card (masked number)."""
    id: uuid.UUID
    masked_number: str
    owner_id: uuid.UUID
    owner_name: str
    balance: float
    status: CardStatus
    expiration_date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
