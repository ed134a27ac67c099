"""
Authentication router: the only public (unauthenticated) endpoints.

Endpoints:
  POST /auth/login    — Exchange username/password for a token pair
  POST /auth/refresh  — Exchange a refresh token for a new pair

Plaintext passwords exist only in memory during request processing and are
never logged. No request-body logging middleware is installed.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.schemas.auth import LoginRequest, RefreshRequest, TokenPairResponse
from bankcards.services import auth_service

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenPairResponse,
    summary="Log in",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate and receive an access token and a refresh token."""
    _, tokens = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
    )
    return TokenPairResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.post(
    "/refresh",
    response_model=TokenPairResponse,
    summary="Refresh tokens",
)
async def refresh(
    request: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange a refresh token for a fresh token pair."""
    tokens = await auth_service.refresh(db=db, refresh_token=request.refresh_token)
    return TokenPairResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
