"""
User service: provisioning and administration of users.

There is no self-service signup. Users are created by create_user() (from the
seed command or tests) and administered through the /admin endpoints:
activation toggles, role changes and a balance summary across a user's cards.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.exceptions import (
    DuplicateUsernameError,
    UserAlreadyActiveError,
    UserAlreadyDeactivatedError,
    UserAlreadyHasRoleError,
    UserNotFoundError,
)
from bankcards.models.user import User, UserRole
from bankcards.paging import PageParams
from bankcards.repositories import CardRepository, UserRepository
from bankcards.security import hash_password

logger = logging.getLogger(__name__)

ALLOWED_SORT_FIELDS = ("id", "username", "role")


async def create_user(
    db: AsyncSession,
    username: str,
    password: str,
    first_name: str,
    last_name: str,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Raises:
        DuplicateUsernameError: If the username is taken.
    """
    users = UserRepository(db)
    if await users.find_by_username(username) is not None:
        raise DuplicateUsernameError(username)

    user = User(
        username=username,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    await users.save(user)
    logger.info("Created user %s with role %s", user.id, role.value)
    return user


async def get_user(db: AsyncSession, user_id: uuid.UUID, *, for_update: bool = False) -> User:
    user = await UserRepository(db).find_by_id(user_id, for_update=for_update)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def list_users(db: AsyncSession, params: PageParams) -> list[User]:
    return await UserRepository(db).find_all(params)


async def activate_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await get_user(db, user_id, for_update=True)
    if user.is_active:
        raise UserAlreadyActiveError(user.id)
    user.is_active = True
    await UserRepository(db).save(user)
    logger.info("Activated user %s", user.id)
    return user


async def deactivate_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await get_user(db, user_id, for_update=True)
    if not user.is_active:
        raise UserAlreadyDeactivatedError(user.id)
    user.is_active = False
    await UserRepository(db).save(user)
    logger.info("Deactivated user %s", user.id)
    return user


async def change_role(db: AsyncSession, user_id: uuid.UUID, role: UserRole) -> User:
    user = await get_user(db, user_id, for_update=True)
    if user.role == role:
        raise UserAlreadyHasRoleError(user.id, role.value)
    user.role = role
    await UserRepository(db).save(user)
    logger.info("User %s is now %s", user.id, role.value)
    return user


async def get_user_with_balance(db: AsyncSession, user_id: uuid.UUID) -> tuple[User, int]:
    """Return the user and the total balance of their cards, in kopecks."""
    user = await get_user(db, user_id)
    total = await CardRepository(db).sum_balance_by_owner(user.id)
    return user, total
