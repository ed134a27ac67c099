"""
Ledger: money movement between two cards.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It moves balances and writes
the Transfer record that explains the movement.

Preconditions, checked in this order:
  1. both cards exist                         -> CardNotFoundError
  2. the requester owns both cards            -> NotCardOwnerError
  3. neither card is BLOCKED                  -> CardBlockedError
  4. amount is positive, cards differ         -> InvalidArgumentError
  5. source balance covers the amount         -> InsufficientBalanceError
Every check runs before the first mutation, so a rejected transfer leaves
both balances exactly as they were.

Atomicity:
  The debit, the credit and the Transfer insert are flushed in the request's
  single database transaction. get_db() commits them together or rolls all
  of them back.

Concurrency:
  Both card rows are read with SELECT ... FOR UPDATE, always in ascending id
  order, overwriting any copy the session already holds. Two transfers over
  the same pair of cards in opposite directions therefore queue on the same
  first lock instead of deadlocking, and the balance check runs against the
  locked, current row.

  SQLite ignores FOR UPDATE. There the cards' version column catches the race:
  a write based on a stale balance matches zero rows. The writes of each
  attempt run inside a SAVEPOINT, so a lost race rolls back only that attempt;
  the cards are read again, every check is repeated, and the transfer is
  retried up to TRANSFER_MAX_ATTEMPTS times before ConcurrentUpdateError
  is raised.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.config import settings
from bankcards.exceptions import (
    CardBlockedError,
    CardNotFoundError,
    ConcurrentUpdateError,
    InsufficientBalanceError,
    InvalidArgumentError,
    NotCardOwnerError,
)
from bankcards.models.card import Card, CardStatus
from bankcards.models.transfer import Transfer
from bankcards.models.user import User
from bankcards.repositories import CardRepository, TransferRepository

logger = logging.getLogger(__name__)


async def _lock_cards(
    cards: CardRepository,
    source_card_id: uuid.UUID,
    target_card_id: uuid.UUID,
) -> tuple[Card, Card]:
    """Load and lock both cards in ascending id order; return (source, target)."""
    locked: dict[uuid.UUID, Card] = {}
    for card_id in sorted({source_card_id, target_card_id}):
        card = await cards.find_by_id(card_id, for_update=True)
        if card is None:
            raise CardNotFoundError(card_id)
        locked[card_id] = card
    return locked[source_card_id], locked[target_card_id]


async def _attempt_transfer(
    db: AsyncSession,
    source_card_id: uuid.UUID,
    target_card_id: uuid.UUID,
    amount_kopecks: int,
    requester: User,
    description: str | None,
) -> Transfer:
    cards = CardRepository(db)
    source, target = await _lock_cards(cards, source_card_id, target_card_id)

    if source.owner_id != requester.id or target.owner_id != requester.id:
        raise NotCardOwnerError("Transfers are only allowed between your own cards")

    for card in (source, target):
        if card.status == CardStatus.BLOCKED:
            raise CardBlockedError(card.id)

    if amount_kopecks <= 0:
        raise InvalidArgumentError("Transfer amount must be positive")
    if source.id == target.id:
        raise InvalidArgumentError("Cannot transfer to the same card")

    if source.balance_kopecks < amount_kopecks:
        raise InsufficientBalanceError(
            card_id=source.id,
            requested_kopecks=amount_kopecks,
            available_kopecks=source.balance_kopecks,
        )

    async with db.begin_nested():
        source.balance_kopecks -= amount_kopecks
        target.balance_kopecks += amount_kopecks

        record = Transfer(
            source_card_id=source.id,
            target_card_id=target.id,
            amount_kopecks=amount_kopecks,
            currency=settings.TRANSFER_CURRENCY,
            description=description,
        )
        # One flush writes both versioned card UPDATEs and the Transfer INSERT
        await TransferRepository(db).save(record)

    logger.info(
        "Transfer %s: %s kopecks from card ending %s to card ending %s",
        record.id, amount_kopecks,
        source.card_number_last_four, target.card_number_last_four,
    )
    return record


async def transfer(
    db: AsyncSession,
    source_card_id: uuid.UUID,
    target_card_id: uuid.UUID,
    amount_kopecks: int,
    requester: User,
    description: str | None = None,
) -> Transfer:
    """
    Move `amount_kopecks` from one of the requester's cards to another.

    Args:
        db: Database session (one transaction per request).
        source_card_id: Card to debit.
        target_card_id: Card to credit.
        amount_kopecks: Positive integer amount in kopecks.
        requester: The authenticated user; must own both cards.
        description: Optional memo stored on the Transfer.

    Returns:
        The persisted Transfer.

    Raises:
        CardNotFoundError: If either card doesn't exist.
        NotCardOwnerError: If the requester doesn't own both cards.
        CardBlockedError: If either card is BLOCKED.
        InvalidArgumentError: If the amount isn't positive or the cards are the same.
        InsufficientBalanceError: If the source balance is below the amount.
        ConcurrentUpdateError: If a card kept changing under us on every attempt.
    """
    attempts = settings.TRANSFER_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            return await _attempt_transfer(
                db, source_card_id, target_card_id, amount_kopecks, requester, description,
            )
        except ConcurrentUpdateError:
            if attempt == attempts:
                raise
            logger.warning(
                "Transfer from card %s lost a race with another update (attempt %d/%d), retrying",
                source_card_id, attempt, attempts,
            )


async def get_card_transfers(
    db: AsyncSession,
    card_id: uuid.UUID,
    requester: User,
) -> list[Transfer]:
    """
    Transfer history of one of the requester's cards, newest first.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        NotCardOwnerError: If the card belongs to someone else.
    """
    card = await CardRepository(db).find_by_id(card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    if card.owner_id != requester.id:
        raise NotCardOwnerError()
    return await TransferRepository(db).find_by_card(card_id)
