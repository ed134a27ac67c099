"""
Admin router: card issuance, card status, block requests and users.

All endpoints require the ADMIN role.

Endpoints:
  POST   /admin/users/{user_id}/cards        — Issue a card to a user
  GET    /admin/cards                        — List all cards
  PATCH  /admin/cards/{card_id}/block        — Block a card
  PATCH  /admin/cards/{card_id}/activate     — Re-activate a card
  DELETE /admin/cards/{card_id}              — Delete a card without transfers
  GET    /admin/requests                     — List block requests
  PATCH  /admin/requests/{request_id}/approve
  PATCH  /admin/requests/{request_id}/decline
  GET    /admin/users                        — List users
  PATCH  /admin/users/{user_id}/activate
  PATCH  /admin/users/{user_id}/deactivate
  PATCH  /admin/users/{user_id}/role?role=ADMIN|USER
  GET    /admin/users/{user_id}/balance      — Total balance of a user's cards

By consolidating all admin routes in one router, we avoid route-ordering
conflicts between routers that share a prefix.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.dependencies import require_admin
from bankcards.models.user import User, UserRole
from bankcards.money import to_rubles
from bankcards.paging import page_params
from bankcards.schemas.block_request import BlockRequestResponse
from bankcards.schemas.card import CardResponse
from bankcards.schemas.user import UserBalanceResponse, UserResponse
from bankcards.services import block_request_service, card_service, user_service

router = APIRouter()


# ---------------------------------------------------------------------------
# Card admin endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/users/{user_id}/cards",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Admin] Issue a card",
)
async def issue_card(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Issue a new card to a user.

    - Number: 16 digits, Visa/Mastercard prefix, Luhn-valid, encrypted at rest
    - Expiration: 5 years from now
    - Opening balance: 10 000.00 RUB
    """
    return await card_service.issue_card(db, user_id)


@router.get(
    "/cards",
    response_model=list[CardResponse],
    summary="[Admin] List all cards",
)
async def list_cards(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    sort_by: str = Query("id"),
    sort_dir: str = Query("asc"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    params = page_params(page, size, sort_by, sort_dir, card_service.ALLOWED_SORT_FIELDS)
    return await card_service.list_cards(db, params)


@router.patch(
    "/cards/{card_id}/block",
    response_model=CardResponse,
    summary="[Admin] Block a card",
)
async def block_card(
    card_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await card_service.block_card(db, card_id)


@router.patch(
    "/cards/{card_id}/activate",
    response_model=CardResponse,
    summary="[Admin] Activate a card",
)
async def activate_card(
    card_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await card_service.activate_card(db, card_id)


@router.delete(
    "/cards/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Delete a card",
)
async def delete_card(
    card_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await card_service.delete_card(db, card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Block request admin endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/requests",
    response_model=list[BlockRequestResponse],
    summary="[Admin] List block requests",
)
async def list_requests(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    sort_by: str = Query("request_date"),
    sort_dir: str = Query("desc"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    params = page_params(page, size, sort_by, sort_dir, block_request_service.ALLOWED_SORT_FIELDS)
    return await block_request_service.list_requests(db, params)


@router.patch(
    "/requests/{request_id}/approve",
    response_model=BlockRequestResponse,
    summary="[Admin] Approve a block request",
)
async def approve_request(
    request_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Approve a block request. This does not block the card by itself."""
    return await block_request_service.approve_request(db, request_id)


@router.patch(
    "/requests/{request_id}/decline",
    response_model=BlockRequestResponse,
    summary="[Admin] Decline a block request",
)
async def decline_request(
    request_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await block_request_service.decline_request(db, request_id)


# ---------------------------------------------------------------------------
# User admin endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="[Admin] List users",
)
async def list_users(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    sort_by: str = Query("username"),
    sort_dir: str = Query("asc"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    params = page_params(page, size, sort_by, sort_dir, user_service.ALLOWED_SORT_FIELDS)
    return await user_service.list_users(db, params)


@router.patch(
    "/users/{user_id}/activate",
    response_model=UserResponse,
    summary="[Admin] Activate a user",
)
async def activate_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.activate_user(db, user_id)


@router.patch(
    "/users/{user_id}/deactivate",
    response_model=UserResponse,
    summary="[Admin] Deactivate a user",
)
async def deactivate_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.deactivate_user(db, user_id)


@router.patch(
    "/users/{user_id}/role",
    response_model=UserResponse,
    summary="[Admin] Change a user's role",
)
async def change_role(
    user_id: uuid.UUID,
    role: UserRole = Query(...),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.change_role(db, user_id, role)


@router.get(
    "/users/{user_id}/balance",
    response_model=UserBalanceResponse,
    summary="[Admin] Total balance of a user's cards",
)
async def user_balance(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user, total_kopecks = await user_service.get_user_with_balance(db, user_id)
    return UserBalanceResponse(
        user=UserResponse.model_validate(user),
        total_balance=to_rubles(total_kopecks),
    )
