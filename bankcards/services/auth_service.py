"""
Authentication service: login and token refresh.

Security notes:
  - Login returns the same error for "unknown user", "wrong password" and
    "deactivated user" to prevent user enumeration
  - Refresh re-checks that the user still exists and is active, so
    deactivating a user stops new access tokens from being minted
"""

import uuid

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import InvalidCredentialsError
from bankcards.models.user import User
from bankcards.repositories import UserRepository
from bankcards.security import REFRESH_TOKEN_TYPE, TokenPair, create_token_pair, decode_token, verify_password


async def login(db: AsyncSession, username: str, password: str) -> tuple[User, TokenPair]:
    """
    Authenticate a user and mint a token pair.

    Raises:
        InvalidCredentialsError: If the username is unknown, the password is
            wrong, or the user is deactivated.
    """
    user = await UserRepository(db).find_by_username(username)

    if user is None:
        raise InvalidCredentialsError()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()
    if not user.is_active:
        raise InvalidCredentialsError()

    return user, create_token_pair(str(user.id))


async def refresh(db: AsyncSession, refresh_token: str) -> TokenPair:
    """
    Exchange a valid refresh token for a new pair.

    Raises:
        InvalidCredentialsError: If the token is invalid, expired, not a
            refresh token, or its user is gone or deactivated.
    """
    try:
        user_id = uuid.UUID(decode_token(refresh_token, REFRESH_TOKEN_TYPE))
    except (JWTError, ValueError):
        raise InvalidCredentialsError("Invalid refresh token")

    user = await UserRepository(db).find_by_id(user_id)
    if user is None or not user.is_active:
        raise InvalidCredentialsError("Invalid refresh token")

    return create_token_pair(str(user.id))
