"""Pydantic schemas for card block requests."""

import uuid
from datetime import datetime

from pydantic import BaseModel

from bankcards.models.block_request import BlockRequestStatus


class BlockRequestResponse(BaseModel):
    id: uuid.UUID
    card_id: uuid.UUID
    masked_card_number: str
    requested_by_id: uuid.UUID
    requested_by_username: str
    request_date: datetime
    status: BlockRequestStatus
    processed_by_id: uuid.UUID | None
    processed_at: datetime | None

    model_config = {"from_attributes": True}
