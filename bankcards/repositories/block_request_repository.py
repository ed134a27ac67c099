"""Block request repository: lookup and save for card block requests."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import flush
from bankcards.models.block_request import CardBlockRequest
from bankcards.paging import PageParams, apply_page


class BlockRequestRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(
        self, request_id: uuid.UUID, *, for_update: bool = False
    ) -> CardBlockRequest | None:
        query = select(CardBlockRequest).where(CardBlockRequest.id == request_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_all(self, params: PageParams) -> list[CardBlockRequest]:
        result = await self.db.execute(
            apply_page(select(CardBlockRequest), CardBlockRequest, params)
        )
        return list(result.scalars().all())

    async def save(self, request: CardBlockRequest) -> CardBlockRequest:
        self.db.add(request)
        await flush(self.db)
        return request
