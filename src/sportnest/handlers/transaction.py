"""Transactional pipeline behavior for commands."""

from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sportnest.core.config import settings
from sportnest.core.logging import get_logger
from sportnest.handlers.pipeline import CallNext, Command, PipelineBehavior, Request
from sportnest.repositories.base import AMBIENT_TRANSACTION_KEY, in_ambient_transaction
from sportnest.repositories.context import DatabaseContextResolver
from sportnest.repositories.errors import ConflictError, RepositoryError

logger = get_logger(__name__)


class TransactionBehavior(PipelineBehavior):
    """Runs every command inside one transaction on a database context.

    Queries pass straight through. A command sent while another command
    already owns the transaction reuses it, so nested commands commit or
    roll back together with the outermost one. On success pending changes
    are flushed and committed once; on any exception everything is rolled
    back and the exception propagates.

    Args:
        resolver: Database context scope of the current request
        context_name: Context whose session carries the transaction
    """

    def __init__(
        self,
        resolver: DatabaseContextResolver,
        context_name: Optional[str] = None,
    ) -> None:
        self._resolver = resolver
        self._context_name = context_name or settings.users_context_name

    async def handle(self, request: Request, call_next: CallNext) -> Any:
        if not isinstance(request, Command):
            return await call_next()

        session = self._resolver.session(self._context_name)
        if in_ambient_transaction(session):
            return await call_next()

        request_type = type(request).__name__
        session.info[AMBIENT_TRANSACTION_KEY] = True
        try:
            logger.info("Begin transaction", request_type=request_type)
            response = await call_next()

            await session.flush()
            await session.commit()
            logger.info("Committed transaction", request_type=request_type)
            return response

        except BaseException as exc:
            logger.error(
                "Rolling back transaction",
                request_type=request_type,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            await session.rollback()
            if isinstance(exc, SQLAlchemyError):
                raise self._translate(exc) from exc
            raise

        finally:
            session.info.pop(AMBIENT_TRANSACTION_KEY, None)

    @staticmethod
    def _translate(exc: SQLAlchemyError) -> RepositoryError:
        if isinstance(exc, IntegrityError):
            return ConflictError(f"Changes conflict with existing data: {exc}")
        return RepositoryError(f"Transaction failed: {exc}")
