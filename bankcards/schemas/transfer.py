"""
Pydantic schemas for transfers.

Amounts arrive as decimals in roubles with at most two decimal places
(e.g. 10.50) and are converted to integer kopecks before reaching the Ledger.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class TransferRequest(BaseModel):
    """Request body for POST /cards/transfers."""
    source_card_id: uuid.UUID
    target_card_id: uuid.UUID
    amount: Decimal = Field(gt=0, decimal_places=2, description="Amount in roubles")
    description: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def cards_must_differ(self):
        """Cannot transfer money to the same card."""
        if self.source_card_id == self.target_card_id:
            raise ValueError("Cannot transfer to the same card")
        return self


class TransferResponse(BaseModel):
    """Public representation of a completed transfer."""
    id: uuid.UUID
    source_card_id: uuid.UUID
    target_card_id: uuid.UUID
    amount: float
    currency: str
    transferred_at: datetime
    description: str | None

    model_config = {"from_attributes": True}
