"""User specifications."""

from typing import Optional

from sqlalchemy import and_, func
from sqlalchemy.sql import ColumnElement

from sportnest.core.config import settings
from sportnest.models.user import User
from sportnest.repositories.base import Repository
from sportnest.repositories.errors import InvalidArgumentError
from sportnest.repositories.specification import RepositorySpecification, Specification


class SearchUsersSpecification(RepositorySpecification[User]):
    """Searches users by display name.

    On PostgreSQL the display name is matched with full-text search in the
    configured language; other databases fall back to a case-insensitive
    substring match that requires every search term.

    Example:
        page = await SearchUsersSpecification(repo).by_name("anna").execute_paged(1, 20)
    """

    def __init__(self, repository: Repository[User], language: Optional[str] = None) -> None:
        super().__init__(repository)
        self.language = language or settings.search_language

    def by_name(self, name: str) -> "SearchUsersSpecification":
        terms = name.split() if name else []
        if not terms:
            raise InvalidArgumentError("Search name must not be empty")

        if self._dialect() == "postgresql":
            criteria = func.to_tsvector(self.language, User.display_name).bool_op("@@")(
                func.plainto_tsquery(self.language, name)
            )
        else:
            criteria = and_(
                *(User.display_name.icontains(term, autoescape=True) for term in terms)
            )

        self.apply_criteria(criteria)
        return self.apply_order(True, User.display_name)

    def _dialect(self) -> str:
        return self.repository.session.get_bind().dialect.name


class GetUserSpecification(Specification[User]):
    """Specification narrowing users by an arbitrary criteria."""

    def __init__(self, criteria: ColumnElement[bool]) -> None:
        super().__init__()
        self.apply_criteria(criteria)
