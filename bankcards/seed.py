"""
Seed command: creates an administrator and sample cardholders with cards.

!! NOT FOR PRODUCTION !!
The accounts below have known passwords. Use them only for local demos.

Usage:
    python -m bankcards.seed
    python -m bankcards.seed --reset     # drop and recreate all tables first

Users are written straight through the services (there is no signup
endpoint), so the server does not need to be running.

Login credentials after seeding:
    ┌──────────────┬───────────────────┬───────┐
    │ Username     │ Password          │ Role  │
    ├──────────────┼───────────────────┼───────┤
    │ admin        │ AdminDemo123!     │ ADMIN │
    │ ivan         │ IvanDemo123!      │ USER  │
    │ maria        │ MariaDemo123!     │ USER  │
    └──────────────┴───────────────────┴───────┘
"""

import argparse
import asyncio

import bankcards.models  # noqa: F401
from bankcards.config import settings
from bankcards.database import AsyncSessionLocal, Base, engine
from bankcards.exceptions import DuplicateUsernameError
from bankcards.logging_config import setup_logging
from bankcards.models.user import UserRole
from bankcards.services import card_service, user_service

ADMIN = {
    "username": "admin",
    "password": "AdminDemo123!",
    "first_name": "Admin",
    "last_name": "User",
}

CARDHOLDERS = [
    {
        "username": "ivan",
        "password": "IvanDemo123!",
        "first_name": "Ivan",
        "last_name": "Petrov",
        "cards": 2,
    },
    {
        "username": "maria",
        "password": "MariaDemo123!",
        "first_name": "Maria",
        "last_name": "Sidorova",
        "cards": 1,
    },
]


def log(msg: str) -> None:
    print(f"  {msg}")


async def create_schema(reset: bool) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def seed_user(profile: dict, role: UserRole) -> None:
    async with AsyncSessionLocal() as db:
        try:
            user = await user_service.create_user(
                db,
                username=profile["username"],
                password=profile["password"],
                first_name=profile["first_name"],
                last_name=profile["last_name"],
                role=role,
            )
        except DuplicateUsernameError:
            log(f"{profile['username']} already exists, skipped")
            return

        for _ in range(profile.get("cards", 0)):
            card = await card_service.issue_card(db, user.id)
            log(f"{user.username}: issued {card.masked_number}")

        await db.commit()
        log(f"{user.username} ({role.value}) created")


async def seed(reset: bool) -> None:
    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    await create_schema(reset)

    print("Creating admin user...")
    await seed_user(ADMIN, UserRole.ADMIN)

    print("\nCreating cardholders...")
    for profile in CARDHOLDERS:
        await seed_user(profile, UserRole.USER)

    await engine.dispose()

    print("\n========================================")
    print("  SEED COMPLETE — Login Credentials")
    print("========================================")
    print(f"\n  {'Username':<14s} {'Password':<20s} {'Role'}")
    print(f"  {'─' * 14} {'─' * 20} {'─' * 5}")
    print(f"  {ADMIN['username']:<14s} {ADMIN['password']:<20s} ADMIN")
    for profile in CARDHOLDERS:
        print(f"  {profile['username']:<14s} {profile['password']:<20s} USER")
    print()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Seed the bank cards database with demo users and cards",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop and recreate all tables before seeding",
    )
    args = parser.parse_args(argv)

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    asyncio.run(seed(args.reset))


if __name__ == "__main__":
    main()
