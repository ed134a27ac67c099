"""Transfer repository: append-only storage for Transfer records."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import flush
from bankcards.models.transfer import Transfer


class TransferRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, transfer_id: uuid.UUID) -> Transfer | None:
        result = await self.db.execute(select(Transfer).where(Transfer.id == transfer_id))
        return result.scalar_one_or_none()

    async def find_by_card(self, card_id: uuid.UUID) -> list[Transfer]:
        """All transfers touching a card, newest first."""
        result = await self.db.execute(
            select(Transfer)
            .where((Transfer.source_card_id == card_id) | (Transfer.target_card_id == card_id))
            .order_by(Transfer.transferred_at.desc())
        )
        return list(result.scalars().all())

    async def save(self, transfer: Transfer) -> Transfer:
        self.db.add(transfer)
        await flush(self.db)
        return transfer
