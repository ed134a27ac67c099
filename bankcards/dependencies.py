"""
FastAPI dependencies for authentication and authorization.

Dependency chain:

  get_current_user (JWT -> active User)
      ├── require_cardholder (User -> User)  [USER role]
      └── require_admin (User -> User)       [ADMIN role]

Role-based access control:
  - USER: sees and operates on their own cards only. Ownership is checked
    again in the services, so a forged card id still fails with 403.
  - ADMIN: issues/blocks/deletes cards, decides block requests, manages
    users. Admins are kept off cardholder endpoints so they cannot move
    money through the cardholder API.
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import get_db
from bankcards.models.user import User, UserRole
from bankcards.repositories import UserRepository
from bankcards.security import ACCESS_TOKEN_TYPE, decode_token

# Bearer token from the Authorization header; tokenUrl feeds Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Validate the access token and return the corresponding active User.

    Raises:
        HTTPException 401: If the token is invalid or the user doesn't exist
            or is deactivated.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user_id = uuid.UUID(decode_token(token, ACCESS_TOKEN_TYPE))
    except (JWTError, ValueError):
        raise credentials_exception

    user = await UserRepository(db).find_by_id(user_id)
    if user is None or not user.is_active:
        raise credentials_exception

    return user


async def require_cardholder(
    user: User = Depends(get_current_user),
) -> User:
    """
    Raises:
        HTTPException 403: If the user is an admin.
    """
    if user.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin accounts cannot access cardholder endpoints. "
                   "Use /admin/* endpoints.",
        )
    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    """
    Raises:
        HTTPException 403: If the user is not an admin.
    """
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
