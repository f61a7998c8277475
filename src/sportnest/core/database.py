"""Database connection management with async SQLAlchemy.

One engine serves the users bounded context. When ``DATABASE_SCHEMA`` is set,
unqualified tables are mapped onto that schema through
``schema_translate_map``, so the same models work against any schema.
"""

from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sportnest.core.config import settings
from sportnest.core.logging import get_logger
from sportnest.models.base import Base
from sportnest.repositories.context import DatabaseContextRegistry, DatabaseContextResolver

logger = get_logger(__name__)


class DBErrorMessage:
    """Standardized database error messages."""
    CREATE_ENGINE_NO_URL = "Database URL is not configured"
    CREATE_ENGINE_MIN_DB_POOL_SIZE = "DATABASE_POOL_SIZE must be at least 1"
    CREATE_ENGINE_NEGATIVE_MAX_OVERFLOW = "DATABASE_MAX_OVERFLOW must be non-negative"
    CREATE_ENGINE_FAILED = "Failed to create database engine"

    CLOSE_DATABASE_FAILED = "Failed to close database connections"


def create_engine() -> AsyncEngine:
    """Create AsyncEngine with connection pooling configuration.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Connection Pool Configuration (server databases only):
        - pool_size: Number of connections to keep in the pool (default: 20)
        - max_overflow: Maximum overflow connections (default: 10)
        - pool_pre_ping: Test connections before using them
        - pool_recycle: Recycle connections after 1 hour

    Raises:
        ValueError: If database URL is invalid or settings are misconfigured
    """
    try:
        if not settings.database_url:
            raise ValueError(DBErrorMessage.CREATE_ENGINE_NO_URL)

        if settings.database_pool_size < 1:
            raise ValueError(DBErrorMessage.CREATE_ENGINE_MIN_DB_POOL_SIZE)

        if settings.database_max_overflow < 0:
            raise ValueError(DBErrorMessage.CREATE_ENGINE_NEGATIVE_MAX_OVERFLOW)

        logger.info(
            "Creating async database engine",
            url=settings.database_url.split("@")[1] if "@" in settings.database_url else "***",
            system=settings.database_system,
            schema=settings.database_schema,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )

        options: dict[str, Any] = {"echo": False}
        if settings.database_system != "sqlite":
            options.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
        if settings.database_schema:
            options["execution_options"] = {
                "schema_translate_map": {None: settings.database_schema}
            }

        return create_async_engine(settings.database_url, **options)
    except ValueError:
        raise
    except (SQLAlchemyError, TypeError) as e:
        logger.error("Failed to create database engine, due to configuration error", error=str(e))
        raise ValueError(DBErrorMessage.CREATE_ENGINE_FAILED) from e


# Create engine instance
engine: AsyncEngine = create_engine()

# Create async session factory
async_session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Database contexts known to the application, in ownership order
context_registry = DatabaseContextRegistry().register(
    settings.users_context_name, Base, async_session_maker
)


async def get_context_resolver() -> AsyncGenerator[DatabaseContextResolver, None]:
    """FastAPI dependency yielding a per-request database context resolver.

    Every session the resolver opened is closed when the request ends, which
    discards uncommitted work.

    Example:
        @router.get("/users")
        async def list_users(resolver: DatabaseContextResolver = Depends(get_context_resolver)):
            return await resolver.repository(User).list_all()
    """
    async with DatabaseContextResolver(context_registry) as resolver:
        yield resolver


async def check_database_connection() -> bool:
    """Check if database connection is available.

    Used for health checks and diagnostics.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.debug("Database connection check passed")
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database connection check failed", error=str(e))
        return False


async def close_database() -> None:
    """Close all database connections.

    Should be called during application shutdown.

    Raises:
        RuntimeError: If graceful shutdown fails
    """
    try:
        logger.info("Closing database connections")
        await engine.dispose()
    except SQLAlchemyError as e:
        logger.error("Error closing database connections", error=str(e))
        raise RuntimeError(DBErrorMessage.CLOSE_DATABASE_FAILED) from e
