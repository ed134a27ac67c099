"""
Block request workflow: cardholders ask, administrators decide.

    PENDING ──approve──> APPROVED
       └────decline───> REJECTED

Rules:
  - Only the card's owner can submit a request, and not for a card that is
    already BLOCKED.
  - A request is decided once. Deciding an APPROVED request raises
    RequestAlreadyApprovedError, a REJECTED one RequestAlreadyDeniedError.
  - processed_by is set to the requester and processed_at to "now".

Approving does NOT block the card. The admin blocks it separately through
card_service.block_card(). Tests pin this behaviour so a change to it is a
deliberate decision.

Each transition loads the request under a row lock and flushes through the
versioned UPDATE, so two concurrent approvals cannot both succeed.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import (
    CardAlreadyBlockedError,
    CardNotFoundError,
    NotCardOwnerError,
    RequestAlreadyApprovedError,
    RequestAlreadyDeniedError,
    RequestNotFoundError,
)
from bankcards.models.block_request import BlockRequestStatus, CardBlockRequest
from bankcards.models.card import CardStatus
from bankcards.models.user import User
from bankcards.paging import PageParams
from bankcards.repositories import BlockRequestRepository, CardRepository

logger = logging.getLogger(__name__)

ALLOWED_SORT_FIELDS = ("id", "status", "request_date")


async def submit_request(
    db: AsyncSession,
    card_id: uuid.UUID,
    requester: User,
) -> CardBlockRequest:
    """
    Create a PENDING block request for a card the requester owns.

    Raises:
        CardNotFoundError: If the card doesn't exist.
        NotCardOwnerError: If the card belongs to someone else.
        CardAlreadyBlockedError: If the card is already BLOCKED.
    """
    card = await CardRepository(db).find_by_id(card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    if card.owner_id != requester.id:
        raise NotCardOwnerError("You can only request blocking of your own card")
    if card.status == CardStatus.BLOCKED:
        raise CardAlreadyBlockedError(card.id)

    request = CardBlockRequest(
        card=card,
        requested_by=requester,
        status=BlockRequestStatus.PENDING,
        request_date=datetime.now(timezone.utc),
    )
    await BlockRequestRepository(db).save(request)

    logger.info(
        "Block request %s submitted for card ending %s by user %s",
        request.id, card.card_number_last_four, requester.id,
    )
    return request


async def _load_for_decision(db: AsyncSession, request_id: uuid.UUID) -> CardBlockRequest:
    request = await BlockRequestRepository(db).find_by_id(request_id, for_update=True)
    if request is None:
        raise RequestNotFoundError(request_id)
    return request


def _ensure_pending(request: CardBlockRequest) -> None:
    # APPROVED and REJECTED are both terminal
    if request.status == BlockRequestStatus.APPROVED:
        raise RequestAlreadyApprovedError(request.id)
    if request.status == BlockRequestStatus.REJECTED:
        raise RequestAlreadyDeniedError(request.id)


def _record_decision(request: CardBlockRequest, status: BlockRequestStatus) -> None:
    request.status = status
    request.processed_by = request.requested_by
    request.processed_at = datetime.now(timezone.utc)


async def approve_request(db: AsyncSession, request_id: uuid.UUID) -> CardBlockRequest:
    """
    Mark a block request APPROVED. The card's status is left untouched.

    Raises:
        RequestNotFoundError: If the request doesn't exist.
        RequestAlreadyApprovedError: If it was approved before.
        RequestAlreadyDeniedError: If it was declined before.
    """
    request = await _load_for_decision(db, request_id)
    _ensure_pending(request)
    _record_decision(request, BlockRequestStatus.APPROVED)
    await BlockRequestRepository(db).save(request)

    logger.info("Block request %s approved", request.id)
    return request


async def decline_request(db: AsyncSession, request_id: uuid.UUID) -> CardBlockRequest:
    """
    Mark a block request REJECTED.

    Raises:
        RequestNotFoundError: If the request doesn't exist.
        RequestAlreadyDeniedError: If it was declined before.
        RequestAlreadyApprovedError: If it was approved before.
    """
    request = await _load_for_decision(db, request_id)
    _ensure_pending(request)
    _record_decision(request, BlockRequestStatus.REJECTED)
    await BlockRequestRepository(db).save(request)

    logger.info("Block request %s declined", request.id)
    return request


async def list_requests(db: AsyncSession, params: PageParams) -> list[CardBlockRequest]:
    """[ADMIN ONLY] List block requests across all users."""
    return await BlockRequestRepository(db).find_all(params)
