"""
Card service: issuance, status changes and administration of cards.

When a card is issued:
  1. A Luhn-valid 16-digit number is generated (card_numbers.py)
  2. If that number already exists (by digest), or the UNIQUE constraint on
     the digest rejects the insert, a new one is generated, up to
     CARD_NUMBER_MAX_ATTEMPTS times
  3. Expiration is set CARD_VALIDITY_YEARS from now
  4. The opening balance is credited and the card starts ACTIVE
  5. CardRepository encrypts the number before the row is written

Status changes (block/activate) delegate to card_lifecycle, after loading
the card under a row lock.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.card_numbers import generate_card_number
from bankcards.config import settings
from bankcards.exceptions import (
    CardInUseError,
    CardNotFoundError,
    DuplicateCardNumberError,
    UserNotFoundError,
)
from bankcards.models.card import Card, CardStatus
from bankcards.models.user import User
from bankcards.paging import PageParams
from bankcards.repositories import CardRepository, UserRepository
from bankcards.services import card_lifecycle

logger = logging.getLogger(__name__)

ALLOWED_SORT_FIELDS = ("id", "balance_kopecks", "created_at", "expiration_date", "status")


def _add_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # Feb 29 -> Feb 28 in a non-leap target year
        return moment.replace(year=moment.year + years, day=28)


def _new_card(owner: User) -> Card:
    now = datetime.now(timezone.utc)
    return Card(
        owner=owner,
        expiration_date=_add_years(now, settings.CARD_VALIDITY_YEARS),
        balance_kopecks=settings.CARD_OPENING_BALANCE_KOPECKS,
        status=CardStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )


async def issue_card(
    db: AsyncSession,
    owner_id: uuid.UUID,
    generate: Callable[[], str] = generate_card_number,
) -> Card:
    """
    Issue a new card to a user.

    Each attempt inserts the card inside a SAVEPOINT. If the digest's UNIQUE
    constraint rejects the row (another transaction stored the same number
    after our existence check), only the savepoint is rolled back and a new
    number is generated.

    Args:
        db: Database session.
        owner_id: The user who will own the card.
        generate: Card number source; tests substitute a deterministic one.

    Returns:
        The persisted Card, with `card_number` holding the plaintext number.

    Raises:
        UserNotFoundError: If the user doesn't exist.
        DuplicateCardNumberError: If every generated number already existed.
    """
    owner = await UserRepository(db).find_by_id(owner_id)
    if owner is None:
        raise UserNotFoundError(owner_id)

    cards = CardRepository(db)
    attempts = settings.CARD_NUMBER_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        card_number = generate()
        if await cards.exists_by_number(card_number):
            logger.warning("Generated card number collided (attempt %d/%d)", attempt, attempts)
            continue

        card = _new_card(owner)
        cards.encode_number(card, card_number)
        try:
            async with db.begin_nested():
                await cards.save(card)
        except IntegrityError:
            if not await cards.exists_by_number(card_number):
                raise
            logger.warning(
                "Card number stored concurrently by another transaction (attempt %d/%d)",
                attempt, attempts,
            )
            continue

        logger.info("Issued card %s ending %s to user %s", card.id, card.card_number_last_four, owner.id)
        return card

    raise DuplicateCardNumberError(attempts)


async def get_card(db: AsyncSession, card_id: uuid.UUID, *, for_update: bool = False) -> Card:
    """
    Raises:
        CardNotFoundError: If the card doesn't exist.
    """
    card = await CardRepository(db).find_by_id(card_id, for_update=for_update)
    if card is None:
        raise CardNotFoundError(card_id)
    return card


async def block_card(db: AsyncSession, card_id: uuid.UUID) -> Card:
    """
    [ADMIN ONLY] Block a card.

    Raises:
        CardNotFoundError, CardAlreadyBlockedError, CardExpiredError
    """
    card = await get_card(db, card_id, for_update=True)
    card_lifecycle.block(card)
    await CardRepository(db).save(card)
    logger.info("Blocked card %s", card.id)
    return card


async def activate_card(db: AsyncSession, card_id: uuid.UUID) -> Card:
    """
    [ADMIN ONLY] Re-activate a blocked card.

    Raises:
        CardNotFoundError, CardAlreadyActiveError, CardExpiredError
    """
    card = await get_card(db, card_id, for_update=True)
    card_lifecycle.activate(card)
    await CardRepository(db).save(card)
    logger.info("Activated card %s", card.id)
    return card


async def delete_card(db: AsyncSession, card_id: uuid.UUID) -> None:
    """
    [ADMIN ONLY] Delete a card and its block requests.

    Transfers are permanent records, so a card that appears in any transfer
    cannot be deleted.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        CardInUseError: If the card has transfer history.
    """
    cards = CardRepository(db)
    card = await get_card(db, card_id, for_update=True)
    if await cards.has_transfers(card.id):
        raise CardInUseError(card.id)
    await cards.delete_by_id(card.id)
    logger.info("Deleted card %s", card_id)


async def list_cards(db: AsyncSession, params: PageParams) -> list[Card]:
    """[ADMIN ONLY] List every card in the system."""
    return await CardRepository(db).find_all(params)


async def list_user_cards(db: AsyncSession, owner_id: uuid.UUID, params: PageParams) -> list[Card]:
    """List the cards owned by one user."""
    return await CardRepository(db).find_by_owner(owner_id, params)
