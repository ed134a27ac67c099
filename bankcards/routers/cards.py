"""
Cards router: cardholder endpoints.

Endpoints:
  GET  /cards                           — List my cards (paged, sortable)
  GET  /cards/balance                   — Total balance across my cards
  POST /cards/transfers                 — Move money between two of my cards
  GET  /cards/{card_id}/transfers       — Transfer history of one of my cards
  POST /cards/{card_id}/block-request   — Ask an admin to block my card

Admins are rejected with 403 (require_cardholder). Card numbers are always
masked in responses.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.dependencies import require_cardholder
from bankcards.models.user import User
from bankcards.money import to_kopecks, to_rubles
from bankcards.paging import page_params
from bankcards.schemas.block_request import BlockRequestResponse
from bankcards.schemas.card import CardResponse
from bankcards.schemas.transfer import TransferRequest, TransferResponse
from bankcards.schemas.user import UserBalanceResponse, UserResponse
from bankcards.services import block_request_service, card_service, ledger, user_service

router = APIRouter()


@router.get(
    "",
    response_model=list[CardResponse],
    summary="List my cards",
)
async def list_my_cards(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    sort_by: str = Query("created_at"),
    sort_dir: str = Query("asc"),
    user: User = Depends(require_cardholder),
    db: AsyncSession = Depends(get_db),
):
    params = page_params(page, size, sort_by, sort_dir, card_service.ALLOWED_SORT_FIELDS)
    return await card_service.list_user_cards(db, user.id, params)


@router.get(
    "/balance",
    response_model=UserBalanceResponse,
    summary="Total balance across my cards",
)
async def my_balance(
    user: User = Depends(require_cardholder),
    db: AsyncSession = Depends(get_db),
):
    user, total_kopecks = await user_service.get_user_with_balance(db, user.id)
    return UserBalanceResponse(
        user=UserResponse.model_validate(user),
        total_balance=to_rubles(total_kopecks),
    )


@router.post(
    "/transfers",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money between my cards",
)
async def create_transfer(
    request: TransferRequest,
    user: User = Depends(require_cardholder),
    db: AsyncSession = Depends(get_db),
):
    """
    Move money from one of my cards to another.

    Atomic: either both balances change and the transfer is recorded, or
    nothing changes.

    - **source_card_id** / **target_card_id**: both must be mine and not blocked
    - **amount**: positive, in roubles, at most two decimal places
    """
    return await ledger.transfer(
        db=db,
        source_card_id=request.source_card_id,
        target_card_id=request.target_card_id,
        amount_kopecks=to_kopecks(request.amount),
        requester=user,
        description=request.description,
    )


@router.get(
    "/{card_id}/transfers",
    response_model=list[TransferResponse],
    summary="Transfer history of my card",
)
async def card_transfers(
    card_id: uuid.UUID,
    user: User = Depends(require_cardholder),
    db: AsyncSession = Depends(get_db),
):
    return await ledger.get_card_transfers(db, card_id, user)


@router.post(
    "/{card_id}/block-request",
    response_model=BlockRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request blocking of my card",
)
async def request_block(
    card_id: uuid.UUID,
    user: User = Depends(require_cardholder),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a block request for an admin to review.

    The card stays usable until an admin blocks it.
    """
    return await block_request_service.submit_request(db, card_id, user)
