"""
Database session and engine configuration.

This file sets up the async database connection using SQLAlchemy + asyncpg.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from engagements.core.config import settings
from engagements.errors import AppError, ConflictError, DependencyError

logger = logging.getLogger(__name__)


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # When DEBUG=True, prints SQL queries to console
    future=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Keeps data accessible after commit
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    Services own their commits; anything left uncommitted when the request
    finishes is rolled back when the session closes.

    Usage in a FastAPI endpoint:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(db: AsyncSession, conflict_message: Optional[str] = None) -> AsyncGenerator[AsyncSession, None]:
    """
    Run one business operation as a single transaction on ``db``.

    Commits when the block exits cleanly. Any error rolls everything back;
    AppErrors propagate unchanged, unique-constraint violations become
    ConflictError when ``conflict_message`` is given, and any other store
    failure becomes DependencyError.
    """
    try:
        yield db
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except IntegrityError as exc:
        await db.rollback()
        if conflict_message:
            raise ConflictError(conflict_message) from exc
        logger.exception("Integrity error during transaction")
        raise DependencyError("The operation could not be stored") from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Database error during transaction")
        raise DependencyError("The operation could not be stored") from exc
    except Exception:
        await db.rollback()
        raise
