"""Database contexts: one session factory per bounded context.

Each bounded context (schema) has its own declarative base. The base's mapper
registry decides which entity types the context owns, so resolving an entity
type to a session never needs a hand-maintained type list.

Usage Example:
    registry = DatabaseContextRegistry()
    registry.register("users", UsersBase, users_session_factory)
    registry.register("employees", EmployeesBase, employees_session_factory)

    async with DatabaseContextResolver(registry) as resolver:
        repo = resolver.repository(User)
        users = await repo.list_all()
"""

from types import TracebackType
from typing import Any, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from sportnest.core.logging import get_logger
from sportnest.repositories.base import Repository
from sportnest.repositories.errors import ConfigurationError

ModelType = TypeVar("ModelType", bound=DeclarativeBase)

logger = get_logger(__name__)


class DatabaseContextFactory:
    """Named session factory for one bounded context.

    Args:
        name: Unique context name (e.g., "users")
        base: Declarative base mapping the context's entity types
        session_factory: Session maker bound to the context's engine
    """

    def __init__(
        self,
        name: str,
        base: type[DeclarativeBase],
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self.name = name
        self.base = base
        self.session_factory = session_factory

    def owns(self, entity_type: type) -> bool:
        """Whether the context's base maps ``entity_type``."""
        return any(mapper.class_ is entity_type for mapper in self.base.registry.mappers)

    def create_session(self) -> AsyncSession:
        return self.session_factory()

    def __repr__(self) -> str:
        return f"DatabaseContextFactory(name={self.name!r}, base={self.base.__name__})"


class DatabaseContextRegistry:
    """Ordered set of context factories for one schema configuration.

    Registration order is significant: when several contexts map the same
    entity type, the first registered one owns it. Lookups are cached per
    registry instance.
    """

    def __init__(self) -> None:
        self._factories: dict[str, DatabaseContextFactory] = {}
        self._owners: dict[type, DatabaseContextFactory] = {}

    def register(
        self,
        name: str,
        base: type[DeclarativeBase],
        session_factory: async_sessionmaker[AsyncSession],
    ) -> "DatabaseContextRegistry":
        """Register a context; returns the registry for chaining.

        Raises:
            ConfigurationError: If a context with that name is already registered
        """
        if name in self._factories:
            raise ConfigurationError(f"Database context '{name}' is already registered")

        self._factories[name] = DatabaseContextFactory(name, base, session_factory)
        self._owners.clear()
        logger.debug("Database context registered", context=name, base=base.__name__)
        return self

    @property
    def names(self) -> list[str]:
        return list(self._factories)

    def get(self, name: str) -> DatabaseContextFactory:
        """Factory registered under ``name``.

        Raises:
            ConfigurationError: If no context has that name
        """
        try:
            return self._factories[name]
        except KeyError:
            raise ConfigurationError(f"No database context named '{name}' is registered") from None

    def factory_for(self, entity_type: type) -> DatabaseContextFactory:
        """Factory of the first registered context owning ``entity_type``.

        Raises:
            ConfigurationError: If no registered context maps the type
        """
        factory = self._owners.get(entity_type)
        if factory is not None:
            return factory

        for candidate in self._factories.values():
            if candidate.owns(entity_type):
                self._owners[entity_type] = candidate
                return candidate

        raise ConfigurationError(
            f"No registered database context owns entity type '{entity_type.__name__}'"
        )


class DatabaseContextResolver:
    """Per-request scope handing out one session per database context.

    Sessions are created lazily on first use and closed together when the
    scope ends, which discards any uncommitted work.

    Example:
        async with DatabaseContextResolver(registry) as resolver:
            session = resolver.resolve(User)
            assert session is resolver.resolve(Order)  # same context
    """

    def __init__(self, registry: DatabaseContextRegistry) -> None:
        self._registry = registry
        self._sessions: dict[str, AsyncSession] = {}

    @property
    def registry(self) -> DatabaseContextRegistry:
        return self._registry

    def resolve(self, entity_type: type) -> AsyncSession:
        """Session of the context owning ``entity_type``.

        Raises:
            ConfigurationError: If no registered context maps the type
        """
        return self._session_of(self._registry.factory_for(entity_type))

    def session(self, name: str) -> AsyncSession:
        """Session of the context registered under ``name``.

        Raises:
            ConfigurationError: If no context has that name
        """
        return self._session_of(self._registry.get(name))

    def repository(self, entity_type: type[ModelType]) -> Repository[ModelType]:
        return Repository(self.resolve(entity_type), entity_type)

    def _session_of(self, factory: DatabaseContextFactory) -> AsyncSession:
        session = self._sessions.get(factory.name)
        if session is None:
            session = factory.create_session()
            self._sessions[factory.name] = session
            logger.debug("Database session opened", context=factory.name)
        return session

    async def close(self) -> None:
        """Close every session opened by this scope."""
        sessions, self._sessions = self._sessions, {}
        for name, session in sessions.items():
            await session.close()
            logger.debug("Database session closed", context=name)

    async def __aenter__(self) -> "DatabaseContextResolver":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> Any:
        await self.close()
