"""Shared pytest fixtures for test suite."""

import os
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

# Set test environment variables BEFORE any sportnest imports
# This ensures tracing and other features are disabled during app initialization
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["OTEL_ENABLED"] = "false"  # Disable OpenTelemetry to prevent background threads
os.environ["VALKEY_URL"] = ""  # Module-level cache client becomes FakeRedis
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from sportnest.api.deps import get_user_cache
from sportnest.core.database import get_context_resolver
from sportnest.main import app
from sportnest.models.base import Base
from sportnest.repositories import DatabaseContextRegistry, DatabaseContextResolver, Repository
from tests.entities.employee_db import EmployeeDbBase
from tests.entities.user_db import User, UserDbBase

USERS_CONTEXT = "users"
USER_DB_CONTEXT = "user-db"
EMPLOYEE_DB_CONTEXT = "employee-db"


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session maker configured like the application's."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_sqlite_engine(path: Path, base: type[DeclarativeBase]) -> AsyncEngine:
    """File-backed SQLite engine with the tables of ``base`` created.

    A file rather than ``:memory:`` gives every session its own connection,
    so a second unit of work only sees committed data.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(base.metadata.create_all)
    return engine


# ===== Repository Fixtures (two test contexts) =====


@pytest_asyncio.fixture
async def user_db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    engine = await create_sqlite_engine(tmp_path / "user_db.sqlite", UserDbBase)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def employee_db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    engine = await create_sqlite_engine(tmp_path / "employee_db.sqlite", EmployeeDbBase)
    yield engine
    await engine.dispose()


@pytest.fixture
def context_registry(
    user_db_engine: AsyncEngine, employee_db_engine: AsyncEngine
) -> DatabaseContextRegistry:
    """Registry with the user-db context registered before the employee-db one."""
    return (
        DatabaseContextRegistry()
        .register(USER_DB_CONTEXT, UserDbBase, create_session_maker(user_db_engine))
        .register(EMPLOYEE_DB_CONTEXT, EmployeeDbBase, create_session_maker(employee_db_engine))
    )


@pytest_asyncio.fixture
async def resolver(
    context_registry: DatabaseContextRegistry,
) -> AsyncGenerator[DatabaseContextResolver, None]:
    """Resolver scope for the unit of work under test."""
    async with DatabaseContextResolver(context_registry) as scope:
        yield scope


@pytest.fixture
def open_resolver(
    context_registry: DatabaseContextRegistry,
) -> Callable[[], DatabaseContextResolver]:
    """Factory for independent resolver scopes, used to observe committed state.

    Example:
        async with open_resolver() as other:
            assert await other.repository(User).count() == 1
    """
    return lambda: DatabaseContextResolver(context_registry)


@pytest.fixture
def user_repository(resolver: DatabaseContextResolver) -> Repository[User]:
    return resolver.repository(User)


# ===== Application Fixtures =====


@pytest_asyncio.fixture
async def app_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    engine = await create_sqlite_engine(tmp_path / "sportnest.sqlite", Base)
    yield engine
    await engine.dispose()


@pytest.fixture
def app_registry(app_engine: AsyncEngine) -> DatabaseContextRegistry:
    return DatabaseContextRegistry().register(
        USERS_CONTEXT, Base, create_session_maker(app_engine)
    )


@pytest_asyncio.fixture
async def app_resolver(
    app_registry: DatabaseContextRegistry,
) -> AsyncGenerator[DatabaseContextResolver, None]:
    async with DatabaseContextResolver(app_registry) as scope:
        yield scope


@pytest_asyncio.fixture
async def cache() -> AsyncGenerator[FakeAsyncRedis, None]:
    """Clean in-memory cache for each test."""
    client = FakeAsyncRedis(decode_responses=True)
    await client.flushdb()
    yield client
    await client.flushdb()
    await client.aclose()


@pytest_asyncio.fixture
async def async_client(
    app_registry: DatabaseContextRegistry,
    cache: FakeAsyncRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the application, backed by the test database and cache.

    Example:
        async def test_endpoint(async_client: AsyncClient):
            response = await async_client.get("/health")
            assert response.status_code == 200
    """

    async def override_resolver() -> AsyncGenerator[DatabaseContextResolver, None]:
        async with DatabaseContextResolver(app_registry) as scope:
            yield scope

    def override_cache() -> Any:
        return cache

    app.dependency_overrides[get_context_resolver] = override_resolver
    app.dependency_overrides[get_user_cache] = override_cache
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


# ===== Utility Fixtures =====


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
