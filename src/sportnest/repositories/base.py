"""Generic repository with predicate, projection, specification and paging support.

This module implements the single data-access façade used by every feature:
a ``Repository[ModelType]`` bound to one ``AsyncSession`` and one mapped
entity type.

Key Concepts:
- GENERIC TYPE SAFETY: Uses TypeVar[ModelType] for compile-time type checking
- UNTRACKED READS: Instances loaded by a read are expunged after
  materialization, unless the session was already tracking them
- UNIT OF WORK: add/update/remove only stage changes; save_changes persists
  them as one batch and clears the identity map
- SET-BASED OPERATIONS: update_where/remove_where run immediately in the
  session's open transaction and return the affected row count
- PAGINATION: one count query plus one offset/limit slice, returned as Page
- TRACING: @trace_database decorators integrate with OpenTelemetry

Usage Example:
    repo = Repository(session, User)
    anna = await repo.list_all(User.display_name == "Anna")
    page = await repo.list_all_paged(page=2, page_size=10)
    emails = await repo.list_all(selector=User.email)

    repo.add(User(display_name="Bob", email="bob@example.com"))
    await repo.save_changes()
"""

from datetime import datetime, timezone
from typing import Any, Generic, Optional, Sequence, TypeVar, Union

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.orm.exc import FlushError
from sqlalchemy.sql import ColumnElement

from sportnest.core.logging import get_logger
from sportnest.core.tracing import trace_database
from sportnest.repositories.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    RepositoryError,
)
from sportnest.repositories.pagination import Page, PageRequest
from sportnest.repositories.specification import Specification, SpecificationEvaluator

# ============================================================================
# GENERIC TYPE DEFINITION
# ============================================================================
ModelType = TypeVar("ModelType", bound=DeclarativeBase)

# A selector is one column expression or a sequence of them
Selector = Union[ColumnElement[Any], Sequence[ColumnElement[Any]], Any]

# Set in AsyncSession.info while TransactionBehavior owns the transaction
AMBIENT_TRANSACTION_KEY = "sportnest.ambient_transaction"

logger = get_logger(__name__)


def in_ambient_transaction(session: AsyncSession) -> bool:
    """Whether a pipeline behavior currently owns the session's transaction."""
    return bool(session.info.get(AMBIENT_TRANSACTION_KEY))


class Repository(Generic[ModelType]):
    """Data access façade for one entity type.

    Args:
        session: AsyncSession of the database context owning ``model``
        model: SQLAlchemy model class (e.g., User)

    Predicates are SQLAlchemy boolean expressions over the model's columns
    (``User.email == "a@b.c"``). Selectors are column expressions; a single
    selector yields scalars, a sequence of selectors yields rows.

    Not safe for concurrent use: the repository shares its session, so one
    instance belongs to one request.
    """

    def __init__(self, session: AsyncSession, model: type[ModelType]) -> None:
        self._session = session
        self._model = model
        self._logger = get_logger(f"{__name__}.{model.__name__}Repository")

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def model(self) -> type[ModelType]:
        return self._model

    # ========================================================================
    # IDENTITY LOOKUP
    # ========================================================================

    @trace_database()
    async def get_by_id(self, entity_id: Any) -> Optional[ModelType]:
        """Get entity by primary key.

        Goes through the session's identity map, so the returned instance
        stays tracked and can be modified and saved directly.

        Returns:
            Entity instance if found, None if not found

        Raises:
            RepositoryError: For database errors
        """
        try:
            self._logger.debug(
                "Getting entity by ID",
                model=self._model.__name__,
                entity_id=str(entity_id),
            )
            return await self._session.get(self._model, entity_id)

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to get entity",
                model=self._model.__name__,
                entity_id=str(entity_id),
                error=str(e),
            )
            raise RepositoryError(f"Failed to get entity: {e}") from e

    async def get_by_id_or_404(self, entity_id: Any) -> ModelType:
        """Get entity by primary key, raising NotFoundError if not found.

        Raises:
            NotFoundError: If entity not found (includes model name and ID in message)
            RepositoryError: For other database errors
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self._model.__name__} with id {entity_id} not found")
        return entity

    # ========================================================================
    # PREDICATE QUERIES
    # ========================================================================

    @trace_database()
    async def count(
        self,
        predicate: Optional[ColumnElement[bool]] = None,
        selector: Selector = None,
        distinct: bool = False,
    ) -> int:
        """Count entities matching ``predicate``.

        With a selector the projected rows are counted, which combined with
        ``distinct=True`` counts distinct projected values.

        Example:
            total = await repo.count()
            with_email = await repo.count(User.email.is_not(None))
            names = await repo.count(selector=User.display_name, distinct=True)
        """
        try:
            self._logger.debug(
                "Counting entities",
                model=self._model.__name__,
                projected=selector is not None,
                distinct=distinct,
            )

            if selector is None and not distinct:
                query = select(func.count()).select_from(self._model)
                if predicate is not None:
                    query = query.where(predicate)
            else:
                inner = self._where(select(self._model), predicate)
                if selector is not None:
                    inner = self._project(inner, selector)
                if distinct:
                    inner = inner.distinct()
                query = select(func.count()).select_from(inner.subquery())

            total = await self._session.scalar(query) or 0

            self._logger.debug(
                "Counted entities successfully",
                model=self._model.__name__,
                total=total,
            )
            return total

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to count entities",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to count entities: {e}") from e

    @trace_database()
    async def list_all(
        self,
        predicate: Optional[ColumnElement[bool]] = None,
        selector: Selector = None,
    ) -> list[Any]:
        """List every entity (or projection) matching ``predicate``.

        No implicit ordering is applied; use a specification for ordered
        results.
        """
        try:
            self._logger.debug(
                "Listing entities",
                model=self._model.__name__,
                projected=selector is not None,
            )

            query = self._where(select(self._model), predicate)
            if selector is not None:
                query = self._project(query, selector)

            return await self._materialize(query, selector)

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to list entities",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to list entities: {e}") from e

    @trace_database()
    async def list_all_paged(
        self,
        predicate: Optional[ColumnElement[bool]] = None,
        page: int = 1,
        page_size: int = 50,
        selector: Selector = None,
    ) -> Page[Any]:
        """List one page of entities (or projections) matching ``predicate``.

        Raises:
            InvalidArgumentError: If page or page_size is below 1
            RepositoryError: For database errors

        Example:
            page = await repo.list_all_paged(page=2, page_size=10)
            print(f"Page {page.current_page}/{page.total_pages}: {len(page.items)} items")
        """
        request = PageRequest(page=page, page_size=page_size)
        try:
            self._logger.debug(
                "Listing entities paged",
                model=self._model.__name__,
                page=request.page,
                page_size=request.page_size,
            )

            query = self._where(select(self._model), predicate)
            return await self._paginate(query, query, request, selector)

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to list entities paged",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to list entities: {e}") from e

    @trace_database()
    async def exist(self, predicate: Optional[ColumnElement[bool]] = None) -> bool:
        """Whether any entity matches ``predicate`` (SELECT EXISTS, nothing loaded)."""
        try:
            inner = self._where(select(self._model), predicate)
            found = await self._session.scalar(select(inner.exists()))
            return bool(found)

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to check entity existence",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to check existence: {e}") from e

    # ========================================================================
    # SPECIFICATION QUERIES
    # ========================================================================

    @trace_database()
    async def query_by_specification(
        self,
        spec: Specification[ModelType],
        selector: Selector = None,
    ) -> list[Any]:
        """Evaluate ``spec`` and return the matching entities or projections.

        Projections skip the include directives since they load no entities.
        """
        try:
            self._logger.debug(
                "Querying by specification",
                model=self._model.__name__,
                specification=type(spec).__name__,
                projected=selector is not None,
            )

            query = SpecificationEvaluator.get_query(
                select(self._model), spec, include=selector is None
            )
            if selector is not None:
                query = self._project(query, selector)

            return await self._materialize(query, selector)

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to query by specification",
                model=self._model.__name__,
                specification=type(spec).__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to query by specification: {e}") from e

    @trace_database()
    async def query_by_specification_paged(
        self,
        spec: Specification[ModelType],
        page: int = 1,
        page_size: int = 50,
        selector: Selector = None,
    ) -> Page[Any]:
        """Evaluate ``spec`` and return one page of results.

        The count query is evaluated without includes or ordering; the slice
        query keeps the specification's ordering.

        Raises:
            InvalidArgumentError: If page or page_size is below 1
            RepositoryError: For database errors
        """
        request = PageRequest(page=page, page_size=page_size)
        try:
            self._logger.debug(
                "Querying by specification paged",
                model=self._model.__name__,
                specification=type(spec).__name__,
                page=request.page,
                page_size=request.page_size,
            )

            count_query = SpecificationEvaluator.get_query(
                select(self._model), spec, include=False
            )
            query = SpecificationEvaluator.get_query(
                select(self._model), spec, include=selector is None
            )
            return await self._paginate(query, count_query, request, selector)

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to query by specification paged",
                model=self._model.__name__,
                specification=type(spec).__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to query by specification: {e}") from e

    # ========================================================================
    # STAGED MUTATIONS
    # ========================================================================

    def add(self, *entities: ModelType) -> None:
        """Stage new entities for insertion on the next save_changes.

        Raises:
            InvalidArgumentError: If any entity is None (nothing is staged)
        """
        self._require_entities(entities)
        if not entities:
            return

        self._session.add_all(entities)
        self._logger.debug(
            "Entities staged for insert",
            model=self._model.__name__,
            count=len(entities),
        )

    @trace_database()
    async def update(self, *entities: ModelType) -> None:
        """Stage entities as modified.

        Tracked entities need nothing more: their changes are flushed with the
        next save_changes. Detached entities are merged onto the stored row.
        Entities unknown to both the session and the store are skipped.

        Raises:
            InvalidArgumentError: If any entity is None (nothing is staged)
        """
        self._require_entities(entities)
        try:
            for entity in entities:
                if entity in self._session:
                    continue

                if await self._load_stored(entity) is None:
                    self._logger.debug(
                        "Skipping update of unknown entity",
                        model=self._model.__name__,
                    )
                    continue

                await self._session.merge(entity)

            self._logger.debug(
                "Entities staged for update",
                model=self._model.__name__,
                count=len(entities),
            )

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to stage entity update",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to update entity: {e}") from e

    @trace_database()
    async def remove(self, *entities: ModelType) -> None:
        """Stage entities for deletion.

        Detached entities are resolved to their stored row first; entities
        unknown to both the session and the store are skipped. A pending
        entity that was never flushed is simply unstaged.

        Raises:
            InvalidArgumentError: If any entity is None (nothing is staged)
        """
        self._require_entities(entities)
        try:
            for entity in entities:
                if entity in self._session.new:
                    self._session.expunge(entity)
                    continue

                if entity in self._session:
                    await self._session.delete(entity)
                    continue

                stored = await self._load_stored(entity)
                if stored is None:
                    self._logger.debug(
                        "Skipping removal of unknown entity",
                        model=self._model.__name__,
                    )
                    continue

                await self._session.delete(stored)

            self._logger.debug(
                "Entities staged for delete",
                model=self._model.__name__,
                count=len(entities),
            )

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to stage entity removal",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to remove entity: {e}") from e

    # ========================================================================
    # SET-BASED OPERATIONS
    # ========================================================================

    @trace_database()
    async def update_where(
        self,
        values: Optional[dict[str, Any]],
        predicate: Optional[ColumnElement[bool]] = None,
    ) -> int:
        """Run a set-based UPDATE and return the number of affected rows.

        Executes in the session's current transaction, so the change is
        visible to this session immediately and durable after commit.
        Refreshes ``updated_at`` when the model has that column.

        Raises:
            InvalidArgumentError: If values is None or empty, or names an identity column

        Example:
            affected = await repo.update_where(
                {"display_name": "Anonymous"}, User.email.is_(None)
            )
        """
        if not values:
            raise InvalidArgumentError("Update values must not be empty")

        identity = self._identity_keys() & set(values)
        if identity:
            raise InvalidArgumentError(
                f"Identity of {self._model.__name__} is immutable: cannot update {sorted(identity)}"
            )

        values = dict(values)
        if hasattr(self._model, "updated_at") and "updated_at" not in values:
            values["updated_at"] = datetime.now(timezone.utc)

        try:
            self._logger.debug(
                "Updating entities in bulk",
                model=self._model.__name__,
                fields=list(values.keys()),
            )

            query = self._where(update(self._model), predicate).values(**values)
            result = await self._session.execute(query)
            affected = int(getattr(result, "rowcount", 0) or 0)

            self._logger.info(
                "Entities updated in bulk",
                model=self._model.__name__,
                affected=affected,
            )
            return affected

        except IntegrityError as e:
            self._logger.error(
                "Bulk update conflicts with existing data",
                model=self._model.__name__,
                error=str(e),
            )
            raise ConflictError(f"Update conflicts with existing data: {e}") from e
        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to update entities in bulk",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to update entities: {e}") from e

    @trace_database()
    async def remove_where(self, predicate: Optional[ColumnElement[bool]]) -> int:
        """Run a set-based DELETE and return the number of removed rows.

        Raises:
            InvalidArgumentError: If predicate is None
        """
        if predicate is None:
            raise InvalidArgumentError("Delete predicate must not be None")

        try:
            self._logger.debug("Removing entities in bulk", model=self._model.__name__)

            result = await self._session.execute(delete(self._model).where(predicate))
            affected = int(getattr(result, "rowcount", 0) or 0)

            self._logger.info(
                "Entities removed in bulk",
                model=self._model.__name__,
                affected=affected,
            )
            return affected

        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to remove entities in bulk",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to remove entities: {e}") from e

    # ========================================================================
    # UNIT OF WORK / TRANSACTION MANAGEMENT
    # ========================================================================

    @trace_database()
    async def save_changes(self) -> None:
        """Persist every staged change as one unit, then clear the identity map.

        Inside an ambient transaction the changes are flushed and the owner
        of the transaction commits; otherwise the session commits here.

        Raises:
            ConflictError: On uniqueness or identity violations; the whole
                batch is discarded
            RepositoryError: For other database errors
        """
        ambient = in_ambient_transaction(self._session)
        try:
            self._logger.debug(
                "Saving changes",
                model=self._model.__name__,
                ambient=ambient,
            )

            if ambient:
                await self._session.flush()
            else:
                await self._session.commit()

        except (IntegrityError, FlushError) as e:
            self._logger.error(
                "Changes conflict with existing data",
                model=self._model.__name__,
                error=str(e),
            )
            if not ambient:
                await self._session.rollback()
            raise ConflictError(f"Changes conflict with existing data: {e}") from e
        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to save changes",
                model=self._model.__name__,
                error=str(e),
            )
            if not ambient:
                await self._session.rollback()
            raise RepositoryError(f"Failed to save changes: {e}") from e

        self._session.expunge_all()
        self._logger.info("Changes saved", model=self._model.__name__, ambient=ambient)

    async def commit(self) -> None:
        """Commit the current transaction.

        Raises:
            RepositoryError: If commit fails
        """
        try:
            await self._session.commit()
            self._logger.debug("Transaction committed", model=self._model.__name__)
        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to commit transaction",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to commit transaction: {e}") from e

    async def rollback(self) -> None:
        """Rollback the current transaction, discarding staged and bulk changes.

        Raises:
            RepositoryError: If rollback fails
        """
        try:
            await self._session.rollback()
            self._logger.debug("Transaction rolled back", model=self._model.__name__)
        except SQLAlchemyError as e:
            self._logger.error(
                "Failed to rollback transaction",
                model=self._model.__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to rollback transaction: {e}") from e

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    @staticmethod
    def _require_entities(entities: Sequence[Any]) -> None:
        if any(entity is None for entity in entities):
            raise InvalidArgumentError("Entities must not be None")

    @staticmethod
    def _where(query: Any, predicate: Optional[ColumnElement[bool]]) -> Any:
        if predicate is None:
            return query
        return query.where(predicate)

    @staticmethod
    def _selectors(selector: Selector) -> list[Any]:
        if isinstance(selector, (list, tuple)):
            if not selector:
                raise InvalidArgumentError("Selector must name at least one column")
            return list(selector)
        return [selector]

    def _project(self, query: Select[Any], selector: Selector) -> Select[Any]:
        return query.with_only_columns(*self._selectors(selector))

    def _identity_keys(self) -> set[str]:
        mapper = sa_inspect(self._model)
        keys = {column.key for column in mapper.primary_key}
        keys.update(mapper.get_property_by_column(column).key for column in mapper.primary_key)
        return keys

    async def _load_stored(self, entity: ModelType) -> Optional[ModelType]:
        identity = sa_inspect(self._model).primary_key_from_instance(entity)
        if any(value is None for value in identity):
            return None
        key = identity[0] if len(identity) == 1 else tuple(identity)
        return await self._session.get(self._model, key)

    async def _materialize(self, query: Select[Any], selector: Selector) -> list[Any]:
        # Keep references so ids of already-tracked instances cannot be reused
        tracked = list(self._session)
        tracked_ids = {id(obj) for obj in tracked}

        result = await self._session.execute(query)
        if selector is None:
            items = list(result.unique().scalars().all())
        elif len(self._selectors(selector)) == 1:
            items = list(result.scalars().all())
        else:
            items = list(result.all())

        for obj in list(self._session):
            if id(obj) not in tracked_ids and obj in self._session:
                self._session.expunge(obj)

        return items

    async def _paginate(
        self,
        query: Select[Any],
        count_query: Select[Any],
        request: PageRequest,
        selector: Selector,
    ) -> Page[Any]:
        total_items = await self._session.scalar(
            select(func.count()).select_from(count_query.order_by(None).subquery())
        ) or 0

        if selector is not None:
            query = self._project(query, selector)
        query = query.offset(request.offset).limit(request.limit)
        items = await self._materialize(query, selector)

        self._logger.debug(
            "Paged entities successfully",
            model=self._model.__name__,
            page=request.page,
            count=len(items),
            total=total_items,
        )
        return Page.build(items, total_items, request)
