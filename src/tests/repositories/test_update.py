"""Tests for staged updates and set-based updates."""

import uuid
from collections.abc import Callable

import pytest

from sportnest.repositories import DatabaseContextResolver, InvalidArgumentError, Repository
from tests.entities.user_db import User


async def _seed(repo: Repository[User], *names: str) -> list[User]:
    users = [User(firstname=name, lastname="Smith") for name in names]
    repo.add(*users)
    await repo.save_changes()
    return users


class TestUpdate:
    """Test Repository.update()."""

    async def test_update_tracked_entity(
        self,
        user_repository: Repository[User],
        open_resolver: Callable[[], DatabaseContextResolver],
    ) -> None:
        (user,) = await _seed(user_repository, "Anna")

        tracked = await user_repository.get_by_id(user.id)
        assert tracked is not None
        tracked.firstname = "Annabelle"
        await user_repository.update(tracked)
        await user_repository.save_changes()

        async with open_resolver() as other:
            stored = await other.repository(User).get_by_id(user.id)
        assert stored is not None
        assert stored.firstname == "Annabelle"

    async def test_update_detached_entity_is_merged(
        self,
        user_repository: Repository[User],
        open_resolver: Callable[[], DatabaseContextResolver],
    ) -> None:
        (user,) = await _seed(user_repository, "Anna")

        (detached,) = await user_repository.list_all(User.id == user.id)
        assert detached not in user_repository.session

        detached.lastname = "Johnson"
        await user_repository.update(detached)
        await user_repository.save_changes()

        async with open_resolver() as other:
            stored = await other.repository(User).get_by_id(user.id)
        assert stored is not None
        assert stored.lastname == "Johnson"
        assert stored.firstname == "Anna"

    async def test_update_entity_saved_earlier_in_same_scope(
        self,
        user_repository: Repository[User],
        open_resolver: Callable[[], DatabaseContextResolver],
    ) -> None:
        (user,) = await _seed(user_repository, "Anna")

        user.firstname = "Hanna"
        await user_repository.update(user)
        await user_repository.save_changes()

        async with open_resolver() as other:
            stored = await other.repository(User).get_by_id(user.id)
        assert stored is not None
        assert stored.firstname == "Hanna"

    async def test_update_unknown_entity_is_noop(
        self, user_repository: Repository[User]
    ) -> None:
        ghost = User(id=uuid.uuid4(), firstname="Ghost")

        await user_repository.update(ghost)
        await user_repository.save_changes()

        assert await user_repository.count() == 0

    async def test_update_entity_without_identity_is_noop(
        self, user_repository: Repository[User]
    ) -> None:
        await user_repository.update(User(firstname="Never added"))
        await user_repository.save_changes()

        assert await user_repository.count() == 0

    async def test_update_none_raises(self, user_repository: Repository[User]) -> None:
        with pytest.raises(InvalidArgumentError):
            await user_repository.update(None)  # type: ignore[arg-type]

    async def test_update_multiple_entities(
        self, user_repository: Repository[User]
    ) -> None:
        anna, max_ = await _seed(user_repository, "Anna", "Max")
        anna.lastname = "Updated"
        max_.lastname = "Updated"

        await user_repository.update(anna, max_)
        await user_repository.save_changes()

        assert await user_repository.count(User.lastname == "Updated") == 2

    def test_identity_is_immutable(self) -> None:
        user = User(id=uuid.uuid4(), firstname="Anna")

        with pytest.raises(InvalidArgumentError, match="immutable"):
            user.id = uuid.uuid4()

    def test_identity_can_be_set_again_to_same_value(self) -> None:
        user_id = uuid.uuid4()
        user = User(id=user_id)

        user.id = user_id

        assert user.id == user_id


class TestUpdateWhere:
    """Test Repository.update_where()."""

    async def test_update_where_returns_affected_rows(
        self, user_repository: Repository[User]
    ) -> None:
        await _seed(user_repository, "Anna", "Anna", "Max")

        affected = await user_repository.update_where(
            {"lastname": "Renamed"}, User.firstname == "Anna"
        )

        assert affected == 2
        assert await user_repository.count(User.lastname == "Renamed") == 2

    async def test_update_where_without_predicate_updates_all(
        self, user_repository: Repository[User]
    ) -> None:
        await _seed(user_repository, "Anna", "Max")

        affected = await user_repository.update_where({"lastname": "Everyone"})

        assert affected == 2

    async def test_update_where_no_match_returns_zero(
        self, user_repository: Repository[User]
    ) -> None:
        await _seed(user_repository, "Anna")

        affected = await user_repository.update_where(
            {"lastname": "Nobody"}, User.firstname == "Unknown"
        )

        assert affected == 0

    async def test_update_where_durable_after_commit(
        self,
        user_repository: Repository[User],
        open_resolver: Callable[[], DatabaseContextResolver],
    ) -> None:
        await _seed(user_repository, "Anna")

        await user_repository.update_where({"lastname": "Committed"}, User.firstname == "Anna")
        await user_repository.commit()

        async with open_resolver() as other:
            assert await other.repository(User).count(User.lastname == "Committed") == 1

    async def test_update_where_discarded_by_rollback(
        self, user_repository: Repository[User]
    ) -> None:
        await _seed(user_repository, "Anna")

        await user_repository.update_where({"lastname": "Temporary"})
        await user_repository.rollback()

        assert await user_repository.count(User.lastname == "Temporary") == 0

    async def test_update_where_rejects_identity_change(
        self,
        user_repository: Repository[User],
        open_resolver: Callable[[], DatabaseContextResolver],
    ) -> None:
        (user,) = await _seed(user_repository, "Anna")

        with pytest.raises(InvalidArgumentError, match="immutable"):
            await user_repository.update_where(
                {"id": uuid.uuid4(), "lastname": "Moved"}, User.firstname == "Anna"
            )
        await user_repository.commit()

        async with open_resolver() as other:
            stored = await other.repository(User).get_by_id(user.id)
        assert stored is not None
        assert stored.lastname == "Smith"

    @pytest.mark.parametrize("values", [None, {}])
    async def test_update_where_requires_values(
        self, user_repository: Repository[User], values: dict | None
    ) -> None:
        with pytest.raises(InvalidArgumentError):
            await user_repository.update_where(values, User.firstname == "Anna")
