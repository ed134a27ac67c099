"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - engine: The async database engine (connection pool for production DBs)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request
  - flush(): flush helper that turns optimistic-lock misses into domain errors

Session lifecycle:
  Each API request gets its own session via get_db(). The session commits on
  success and rolls back on ANY exception, business errors included. A transfer
  therefore either commits both balance updates and its Transfer row, or none
  of them.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.orm.exc import StaleDataError

from bankcards.config import settings
from bankcards.exceptions import ConcurrentUpdateError


# echo=True in debug mode logs all SQL statements. Card numbers only ever
# reach SQL as ciphertext, so echo does not leak them.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# expire_on_commit=False prevents lazy-load errors after commit in async context
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    Committed on success, rolled back on any exception, closed afterwards.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def flush(db: AsyncSession) -> None:
    """
    Flush pending changes, reporting a version mismatch as ConcurrentUpdateError.

    Versioned rows (cards, block requests) are updated with
    "WHERE id = ? AND version = ?". Zero matched rows means another
    transaction changed the row after we read it.
    """
    try:
        await db.flush()
    except StaleDataError as exc:
        raise ConcurrentUpdateError() from exc
