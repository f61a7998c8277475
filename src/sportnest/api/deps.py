"""FastAPI dependencies shared by the routers."""

from typing import Any

from fastapi import Depends

from sportnest.core import cache
from sportnest.core.database import get_context_resolver
from sportnest.handlers.pipeline import Mediator
from sportnest.handlers.transaction import TransactionBehavior
from sportnest.handlers.users import USER_HANDLERS
from sportnest.repositories.context import DatabaseContextResolver


def get_user_cache() -> Any:
    """Cache client backing the user lookup read-through cache."""
    return cache.cache_client


def get_mediator(
    resolver: DatabaseContextResolver = Depends(get_context_resolver),
    user_cache: Any = Depends(get_user_cache),
) -> Mediator:
    """Per-request mediator with the transactional behavior installed."""
    return Mediator(
        resolver,
        USER_HANDLERS,
        behaviors=[TransactionBehavior(resolver)],
        cache=user_cache,
    )
