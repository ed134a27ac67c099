"""
Card repository: lookups and writes for cards, plus the card-number codec.

This is the only place the field cipher is applied:
  - add() encrypts the plaintext number and stores its digest and last four
  - every read decrypts card_number_encrypted into the transient
    `card_number` attribute

A DecryptionFailure on read is never swallowed. A card whose stored number
cannot be authenticated is an integrity problem, not a missing value.
"""

import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.crypto import FieldCipher, field_cipher
from bankcards.database import flush
from bankcards.models.block_request import CardBlockRequest
from bankcards.models.card import Card
from bankcards.models.transfer import Transfer
from bankcards.paging import PageParams, apply_page


class CardRepository:

    def __init__(self, db: AsyncSession, cipher: FieldCipher = field_cipher):
        self.db = db
        self.cipher = cipher

    # --- codec ---

    def encode_number(self, card: Card, card_number: str) -> None:
        card.card_number_encrypted = self.cipher.encrypt(card_number)
        card.card_number_digest = self.cipher.digest(card_number)
        card.card_number_last_four = card_number[-4:]
        card.card_number = card_number

    def _decoded(self, card: Card | None) -> Card | None:
        if card is not None:
            card.card_number = self.cipher.decrypt(card.card_number_encrypted)
        return card

    # --- reads ---

    async def find_by_id(self, card_id: uuid.UUID, *, for_update: bool = False) -> Card | None:
        query = select(Card).where(Card.id == card_id)
        if for_update:
            # Locks the row on PostgreSQL (no-op on SQLite) and overwrites any
            # copy of the card already held by this session
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return self._decoded(result.scalar_one_or_none())

    async def find_by_owner(self, owner_id: uuid.UUID, params: PageParams) -> list[Card]:
        query = apply_page(select(Card).where(Card.owner_id == owner_id), Card, params)
        result = await self.db.execute(query)
        return [self._decoded(card) for card in result.scalars().all()]

    async def find_all(self, params: PageParams) -> list[Card]:
        result = await self.db.execute(apply_page(select(Card), Card, params))
        return [self._decoded(card) for card in result.scalars().all()]

    async def exists_by_number(self, card_number: str) -> bool:
        digest = self.cipher.digest(card_number)
        result = await self.db.execute(
            select(Card.id).where(Card.card_number_digest == digest)
        )
        return result.first() is not None

    async def sum_balance_by_owner(self, owner_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Card.balance_kopecks), 0))
            .where(Card.owner_id == owner_id)
        )
        return int(result.scalar_one())

    async def has_transfers(self, card_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(Transfer.id)
            .where((Transfer.source_card_id == card_id) | (Transfer.target_card_id == card_id))
            .limit(1)
        )
        return result.first() is not None

    # --- writes ---

    async def save(self, card: Card) -> Card:
        self.db.add(card)
        await flush(self.db)
        return card

    async def delete_by_id(self, card_id: uuid.UUID) -> None:
        """Delete a card together with its block requests."""
        await self.db.execute(
            delete(CardBlockRequest).where(CardBlockRequest.card_id == card_id)
        )
        await self.db.execute(delete(Card).where(Card.id == card_id))
        await flush(self.db)
