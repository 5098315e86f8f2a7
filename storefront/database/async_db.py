import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from urllib.parse import quote_plus

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from storefront.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_async_database_url(settings: Settings | None = None) -> str:
    """Build the asyncpg database URL from settings."""
    settings = settings or get_settings()
    if not settings.DB_NAME:
        raise ValueError("Database name is required (DB_NAME)")

    encoded_user = quote_plus(settings.DB_USER)
    host = settings.DB_HOST or "localhost"
    if settings.DB_PASSWORD:
        encoded_password = quote_plus(settings.DB_PASSWORD)
        return f"postgresql+asyncpg://{encoded_user}:{encoded_password}@{host}:{settings.DB_PORT}/{settings.DB_NAME}"
    return f"postgresql+asyncpg://{encoded_user}@{host}:{settings.DB_PORT}/{settings.DB_NAME}"


def create_async_database_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the async engine; NullPool in development, a sized pool otherwise."""
    settings = settings or get_settings()
    database_url = get_async_database_url(settings)

    base_config = {
        "echo": settings.DB_ECHO,
        "pool_pre_ping": True,
    }

    if settings.is_development:
        logger.info("Creating async database engine for DEVELOPMENT (NullPool)")
        return create_async_engine(database_url, poolclass=NullPool, **base_config)

    logger.info("Creating async database engine for PRODUCTION (pooled)")
    return create_async_engine(
        database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        **base_config,
    )


def get_async_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_database_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Use cases commit through their unit of work; anything left
    uncommitted is rolled back when the request ends.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Async database error: {e}")
            await session.rollback()
            raise


@asynccontextmanager
async def get_async_db_context():
    """Context manager for database work outside a request (scripts, jobs)."""
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Async database error: {e}")
            await session.rollback()
            raise


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None
