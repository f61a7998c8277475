"""Query specification pattern on top of SQLAlchemy ``Select``.

A specification describes *how* to query an entity type: an optional
criteria, an optional ordering and a list of include directives that add
eager loading. ``SpecificationEvaluator`` turns a specification into a
``Select`` in a fixed order: criteria, includes, ordering.

Usage Example:
    spec = (
        Specification[User]
        .create()
        .apply_criteria(User.display_name.ilike("%anna%"))
        .apply_order(True, User.display_name)
    )
    users = await repo.query_by_specification(spec)
"""

from typing import TYPE_CHECKING, Any, Callable, Generic, Optional, TypeVar

from sqlalchemy import Select, and_
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import ColumnElement

if TYPE_CHECKING:
    from sportnest.repositories.base import Repository
    from sportnest.repositories.pagination import Page

ModelType = TypeVar("ModelType", bound=DeclarativeBase)
SpecType = TypeVar("SpecType", bound="Specification[Any]")

# An include directive augments a query, e.g. lambda q: q.options(selectinload(User.orders))
Include = Callable[[Select[Any]], Select[Any]]


class Specification(Generic[ModelType]):
    """Reusable query descriptor for one entity type.

    Attributes:
        criteria: Boolean SQL expression narrowing the rows, or None
        order_by: Column expression to order by, or None for the default key
        order_ascending: True/False for a direction, None for no ordering

    Not thread-safe to mutate while another operation executes it.
    """

    def __init__(self) -> None:
        self.criteria: Optional[ColumnElement[bool]] = None
        self.order_by: Optional[ColumnElement[Any]] = None
        self.order_ascending: Optional[bool] = None
        self._includes: list[Include] = []

    @classmethod
    def create(cls) -> "Specification[ModelType]":
        return cls()

    @property
    def includes(self) -> tuple[Include, ...]:
        """Include directives in registration order."""
        return tuple(self._includes)

    def add_include(self: SpecType, include: Include) -> SpecType:
        self._includes.append(include)
        return self

    def apply_criteria(self: SpecType, *criteria: ColumnElement[bool]) -> SpecType:
        """Replace the criteria; several expressions are combined with AND."""
        if not criteria:
            self.criteria = None
        elif len(criteria) == 1:
            self.criteria = criteria[0]
        else:
            self.criteria = and_(*criteria)
        return self

    def apply_order(
        self: SpecType,
        is_ascending: bool,
        order_by: Optional[ColumnElement[Any]] = None,
    ) -> SpecType:
        """Order by ``order_by`` (or the primary key when omitted)."""
        self.order_by = order_by
        self.order_ascending = is_ascending
        return self


class SpecificationEvaluator:
    """Applies a specification onto a base query."""

    @staticmethod
    def get_query(
        query: Select[Any],
        spec: Specification[Any],
        include: bool = True,
    ) -> Select[Any]:
        """Return ``query`` narrowed, eager-loaded and ordered by ``spec``.

        Criteria narrow the rows before includes load related data, and
        ordering comes last so it composes with offset/limit.

        Args:
            query: Base ``select(Model)`` query
            spec: Specification to apply
            include: Apply include directives; projections and count queries
                skip them since they load no entities
        """
        if spec.criteria is not None:
            query = query.where(spec.criteria)

        if include:
            for include_directive in spec.includes:
                query = include_directive(query)

        return SpecificationEvaluator._add_sorting(query, spec)

    @staticmethod
    def _add_sorting(query: Select[Any], spec: Specification[Any]) -> Select[Any]:
        if spec.order_ascending is None:
            return query

        if spec.order_by is None:
            entity = query.column_descriptions[0]["entity"]
            keys = list(sa_inspect(entity).primary_key)
        else:
            keys = [spec.order_by]

        if spec.order_ascending:
            return query.order_by(*(key.asc() for key in keys))
        return query.order_by(*(key.desc() for key in keys))


class RepositorySpecification(Specification[ModelType]):
    """Specification bound to the repository that executes it.

    Lets feature code build and run a query in one expression:

        users = await SearchUsersSpecification(repo).by_name("anna").execute()
    """

    def __init__(self, repository: "Repository[ModelType]") -> None:
        super().__init__()
        self._repository = repository

    @property
    def repository(self) -> "Repository[ModelType]":
        return self._repository

    async def execute(self, selector: Any = None) -> list[Any]:
        return await self._repository.query_by_specification(self, selector=selector)

    async def execute_paged(
        self,
        page: int = 1,
        page_size: int = 50,
        selector: Any = None,
    ) -> "Page[Any]":
        return await self._repository.query_by_specification_paged(
            self, page=page, page_size=page_size, selector=selector
        )
