"""
Database configuration and engine lifecycle.
Uses PostgreSQL via asyncpg with SQLAlchemy 2 async engine.

The engine is created once at process start (FastAPI lifespan or a CLI
script's ``main``) and handed to the RecordStore; nothing here keeps a
module-level connection.
"""

import logging
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text
from ledger.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _get_connect_args(timeout: float) -> dict:
    """Fail fast if the DB is unreachable. Both asyncpg and sqlite accept ``timeout``."""
    return {"timeout": timeout}


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the long-lived async engine for the configured database."""
    url = settings.database_url
    kwargs = {
        "echo": False,
        "connect_args": _get_connect_args(settings.store_timeout_seconds),
    }
    if url.startswith("postgresql"):
        kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)
    return create_async_engine(url, **kwargs)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine):
    """
    Create all tables defined in models.
    Uses create_all which is safe — it only creates tables that don't exist yet.
    Production deployments should run Alembic migrations instead.
    """
    # Import models to ensure they are registered with Base.metadata
    import ledger.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database initialized with {len(Base.metadata.tables)} tables: "
                f"{', '.join(Base.metadata.tables.keys())}")


async def check_db_connection(engine: AsyncEngine | None) -> bool:
    """Test database connectivity."""
    if engine is None:
        return False
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
