"""Async PostgreSQL engine and the session factory shared by the stores.

Every store, the actor directory and the audit trail open short-lived
sessions from `async_session_factory`; none of them share a session, so
an audit write can never roll back the mutation it documents.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.config import DatabaseSettings, settings

logger = logging.getLogger(__name__)


def build_engine(db: DatabaseSettings, echo: bool = False) -> AsyncEngine:
    return create_async_engine(
        db.database_url,
        echo=echo,
        pool_size=db.pool_size,
        pool_pre_ping=True,
    )


engine: AsyncEngine = build_engine(settings.db, echo=settings.log_level == "DEBUG")

async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Check connectivity; outside production also create missing tables.

    Production schema comes from the Alembic revisions only.
    """
    async with engine.begin() as conn:
        if settings.is_production:
            await conn.execute(text("SELECT 1"))
            return

        from src.models import Base

        await conn.run_sync(Base.metadata.create_all)
        logger.info("Development schema ensured (%d tables)", len(Base.metadata.tables))


@contextlib.asynccontextmanager
async def db_lifespan() -> AsyncGenerator[None, None]:
    """Open the pool for the app's lifetime and dispose it on shutdown."""
    await init_db()
    try:
        yield
    finally:
        await engine.dispose()
