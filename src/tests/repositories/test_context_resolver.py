"""Tests for resolving entity types to database contexts."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from sportnest.repositories import (
    ConfigurationError,
    DatabaseContextRegistry,
    DatabaseContextResolver,
    Repository,
)
from tests.conftest import EMPLOYEE_DB_CONTEXT, USER_DB_CONTEXT, create_session_maker
from tests.entities import employee_db, user_db


class Unmapped:
    pass


class TestDatabaseContextRegistry:
    """Test DatabaseContextRegistry registration and lookup."""

    def test_names_keep_registration_order(
        self, context_registry: DatabaseContextRegistry
    ) -> None:
        assert context_registry.names == [USER_DB_CONTEXT, EMPLOYEE_DB_CONTEXT]

    def test_duplicate_name_raises(
        self, context_registry: DatabaseContextRegistry, user_db_engine: AsyncEngine
    ) -> None:
        with pytest.raises(ConfigurationError, match="already registered"):
            context_registry.register(
                USER_DB_CONTEXT, user_db.UserDbBase, create_session_maker(user_db_engine)
            )

    def test_unknown_name_raises(self, context_registry: DatabaseContextRegistry) -> None:
        with pytest.raises(ConfigurationError, match="missing"):
            context_registry.get("missing")

    def test_factory_for_owning_context(self, context_registry: DatabaseContextRegistry) -> None:
        assert context_registry.factory_for(user_db.Order).name == USER_DB_CONTEXT
        assert context_registry.factory_for(employee_db.Employee).name == EMPLOYEE_DB_CONTEXT

    def test_unknown_type_raises_naming_type(
        self, context_registry: DatabaseContextRegistry
    ) -> None:
        with pytest.raises(ConfigurationError, match="Unmapped"):
            context_registry.factory_for(Unmapped)

    def test_first_registered_context_wins(self, user_db_engine: AsyncEngine) -> None:
        session_factory = create_session_maker(user_db_engine)
        registry = (
            DatabaseContextRegistry()
            .register("primary", user_db.UserDbBase, session_factory)
            .register("secondary", user_db.UserDbBase, session_factory)
        )

        assert registry.factory_for(user_db.User).name == "primary"


class TestDatabaseContextResolver:
    """Test DatabaseContextResolver session handling."""

    def test_user_db_user_resolves_to_user_db(self, resolver: DatabaseContextResolver) -> None:
        assert resolver.resolve(user_db.User) is resolver.session(USER_DB_CONTEXT)

    def test_employee_resolves_to_employee_db(self, resolver: DatabaseContextResolver) -> None:
        assert resolver.resolve(employee_db.Employee) is resolver.session(EMPLOYEE_DB_CONTEXT)

    def test_same_class_name_resolves_by_mapping(
        self, resolver: DatabaseContextResolver
    ) -> None:
        user_db_session = resolver.resolve(user_db.User)
        employee_db_session = resolver.resolve(employee_db.User)

        assert employee_db_session is resolver.session(EMPLOYEE_DB_CONTEXT)
        assert user_db_session is not employee_db_session

    def test_one_session_per_context(self, resolver: DatabaseContextResolver) -> None:
        assert resolver.resolve(user_db.User) is resolver.resolve(user_db.Order)

    def test_unknown_type_raises(self, resolver: DatabaseContextResolver) -> None:
        with pytest.raises(ConfigurationError, match="Unmapped"):
            resolver.resolve(Unmapped)

    def test_repository_uses_resolved_session(self, resolver: DatabaseContextResolver) -> None:
        repo = resolver.repository(employee_db.Employee)

        assert isinstance(repo, Repository)
        assert repo.model is employee_db.Employee
        assert repo.session is resolver.session(EMPLOYEE_DB_CONTEXT)

    async def test_close_opens_fresh_sessions(self, resolver: DatabaseContextResolver) -> None:
        before = resolver.resolve(user_db.User)

        await resolver.close()

        assert resolver.resolve(user_db.User) is not before

    async def test_contexts_store_independently(self, resolver: DatabaseContextResolver) -> None:
        users = resolver.repository(user_db.User)
        employees = resolver.repository(employee_db.User)

        users.add(user_db.User(firstname="Anna"))
        await users.save_changes()
        employees.add(employee_db.User(firstname="Max", lastname="Müller"))
        await employees.save_changes()

        assert await users.list_all(selector=user_db.User.firstname) == ["Anna"]
        assert await employees.list_all(selector=employee_db.User.firstname) == ["Max"]
