"""Async database configuration.

Provides:
- Async SQLAlchemy engine and session factory
- Transaction-scoped sessions (commit on success, rollback on error)
- Connectivity check for readiness probes
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.infra.logging import get_logger

logger = get_logger(__name__)

# Type alias for dependency injection
DatabaseSession = AsyncSession
SessionFactory = async_sessionmaker[AsyncSession]

# Global engine (initialized lazily on first use)
_engine: AsyncEngine | None = None
_session_factory: SessionFactory | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine

    if _engine is None:
        url = make_url(settings.database_url)
        logger.info(
            "Creating database engine",
            driver=url.drivername,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
        )

        pool_options: dict[str, int] = {}
        if not url.drivername.startswith("sqlite"):
            pool_options = {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_pool_max_overflow,
                "pool_recycle": 1800,
            }

        _engine = create_async_engine(
            url,
            pool_pre_ping=True,
            echo=settings.debug,
            **pool_options,
        )

    return _engine


def create_session_factory(engine: AsyncEngine) -> SessionFactory:
    """Build a session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory() -> SessionFactory:
    """Get or create the session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())

    return _session_factory


@asynccontextmanager
async def get_db_session(
    factory: SessionFactory | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session scoped to one unit of work.

    The session commits when the block exits cleanly, rolls back when it
    raises, and is always closed (returning its connection to the pool).

    Args:
        factory: Session factory to draw from. Defaults to the global one.

    Example:
        async with get_db_session() as session:
            session.add(product)
    """
    session = (factory or get_session_factory())()

    try:
        yield session
        await session.commit()

    except Exception as e:
        await session.rollback()
        logger.error(
            "Database session rolled back",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise

    finally:
        await session.close()


async def close_db_engine() -> None:
    """Close the database engine and all connections.

    Call this during application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def verify_db_connection(factory: SessionFactory | None = None) -> bool:
    """Verify database connectivity.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        async with get_db_session(factory) as session:
            await session.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
    except Exception as e:
        logger.error("Database connection failed", error=str(e))
        return False
