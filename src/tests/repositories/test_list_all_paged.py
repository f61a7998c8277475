"""Tests for paged predicate queries."""

import pytest

from sportnest.repositories import InvalidArgumentError, Page, Repository
from tests.entities.user_db import User


async def _seed(repo: Repository[User], count: int, lastname: str = "Smith") -> None:
    repo.add(*(User(firstname=f"User {i:02d}", lastname=lastname) for i in range(count)))
    await repo.save_changes()


class TestListAllPaged:
    """Test Repository.list_all_paged()."""

    async def test_middle_page(self, user_repository: Repository[User]) -> None:
        await _seed(user_repository, 30)

        page = await user_repository.list_all_paged(page=2, page_size=10)

        assert isinstance(page, Page)
        assert page.current_page == 2
        assert len(page.items) == 10
        assert page.total_items == 30
        assert page.total_pages == 3
        assert page.next_page == 3
        assert page.page_size == 10

    async def test_last_page_is_partial(self, user_repository: Repository[User]) -> None:
        await _seed(user_repository, 25)

        page = await user_repository.list_all_paged(page=3, page_size=10)

        assert len(page.items) == 5
        assert page.total_pages == 3
        assert page.next_page == 3

    async def test_page_beyond_total_is_empty_with_totals(
        self, user_repository: Repository[User]
    ) -> None:
        await _seed(user_repository, 5)

        page = await user_repository.list_all_paged(page=3, page_size=4)

        assert page.items == ()
        assert page.current_page == 3
        assert page.total_items == 5
        assert page.total_pages == 2
        assert page.next_page == 2

    async def test_empty_table(self, user_repository: Repository[User]) -> None:
        page = await user_repository.list_all_paged(page=1, page_size=10)

        assert page.items == ()
        assert page.total_items == 0
        assert page.total_pages == 0
        assert page.next_page == 0

    async def test_pages_do_not_overlap(self, user_repository: Repository[User]) -> None:
        await _seed(user_repository, 12)

        first = await user_repository.list_all_paged(page=1, page_size=5)
        second = await user_repository.list_all_paged(page=2, page_size=5)
        third = await user_repository.list_all_paged(page=3, page_size=5)

        ids = [user.id for page in (first, second, third) for user in page.items]
        assert len(ids) == 12
        assert len(set(ids)) == 12

    async def test_paged_with_predicate(self, user_repository: Repository[User]) -> None:
        await _seed(user_repository, 7, lastname="Smith")
        await _seed(user_repository, 3, lastname="Jones")

        page = await user_repository.list_all_paged(User.lastname == "Jones", page=1, page_size=2)

        assert page.total_items == 3
        assert page.total_pages == 2
        assert len(page.items) == 2
        assert all(user.lastname == "Jones" for user in page.items)

    async def test_paged_with_selector(self, user_repository: Repository[User]) -> None:
        await _seed(user_repository, 4)

        page = await user_repository.list_all_paged(page=1, page_size=10, selector=User.lastname)

        assert page.items == ("Smith", "Smith", "Smith", "Smith")
        assert page.total_items == 4

    async def test_paged_items_are_untracked(self, user_repository: Repository[User]) -> None:
        await _seed(user_repository, 3)

        page = await user_repository.list_all_paged(page=1, page_size=3)

        assert all(user not in user_repository.session for user in page.items)

    @pytest.mark.parametrize(("page", "page_size"), [(0, 10), (-1, 10), (1, 0), (1, -5)])
    async def test_invalid_paging_raises(
        self, user_repository: Repository[User], page: int, page_size: int
    ) -> None:
        with pytest.raises(InvalidArgumentError):
            await user_repository.list_all_paged(page=page, page_size=page_size)
