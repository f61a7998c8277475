"""Request pipeline: request markers, handlers, behaviors and the mediator.

Routes never call repositories directly. They build a request object and
send it through a ``Mediator``, which runs the configured behaviors around
the request's handler, the same way ASGI middleware wraps an endpoint:

    behavior_1.handle(request, call_next)
        -> behavior_2.handle(request, call_next)
            -> handler.handle(request)

Usage Example:
    mediator = Mediator(resolver, USER_HANDLERS, behaviors=[TransactionBehavior(resolver)])
    user = await mediator.send(RegisterUserCommand(display_name="Anna", email="a@x.de"))
"""

import functools
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Generic, Optional, TypeVar

from sportnest.core.logging import get_logger
from sportnest.core.tracing import trace_async
from sportnest.repositories.context import DatabaseContextResolver
from sportnest.repositories.errors import ConfigurationError

logger = get_logger(__name__)

RequestType = TypeVar("RequestType", bound="Request")

CallNext = Callable[[], Awaitable[Any]]


class Request:
    """Base marker for everything a mediator can dispatch."""


class Command(Request):
    """A request that changes state; runs inside the ambient transaction."""


class Query(Request):
    """A request that only reads state; never opens a transaction."""


class RequestHandler(Generic[RequestType]):
    """Handles one request type.

    Handlers are created per dispatch by their factory and receive the
    mediator, which gives access to the request scope (resolver, cache) and
    lets a handler send nested requests.
    """

    def __init__(self, mediator: "Mediator") -> None:
        self.mediator = mediator

    @property
    def resolver(self) -> DatabaseContextResolver:
        return self.mediator.resolver

    async def handle(self, request: RequestType) -> Any:
        raise NotImplementedError


class PipelineBehavior:
    """Wraps request handling; must await ``call_next`` to continue the chain."""

    async def handle(self, request: Request, call_next: CallNext) -> Any:
        return await call_next()


HandlerFactory = Callable[["Mediator"], RequestHandler[Any]]


class Mediator:
    """Dispatches requests to their handlers through a behavior chain.

    Args:
        resolver: Database context scope of the current request
        handlers: Mapping of request type to handler factory
        behaviors: Behaviors in outermost-first order
        cache: Optional cache client made available to handlers
    """

    def __init__(
        self,
        resolver: DatabaseContextResolver,
        handlers: Mapping[type[Request], HandlerFactory],
        behaviors: Sequence[PipelineBehavior] = (),
        cache: Optional[Any] = None,
    ) -> None:
        self.resolver = resolver
        self.cache = cache
        self._handlers = dict(handlers)
        self._behaviors = list(behaviors)

    @trace_async("mediator.send", component="pipeline")
    async def send(self, request: Request) -> Any:
        """Run ``request`` through the behaviors and its handler.

        Raises:
            ConfigurationError: If no handler is registered for the request type
        """
        factory = self._handlers.get(type(request))
        if factory is None:
            raise ConfigurationError(
                f"No handler registered for request type '{type(request).__name__}'"
            )

        handler = factory(self)
        logger.debug(
            "Dispatching request",
            request_type=type(request).__name__,
            handler=type(handler).__name__,
        )

        call_next: CallNext = functools.partial(handler.handle, request)
        for behavior in reversed(self._behaviors):
            call_next = functools.partial(behavior.handle, request, call_next)

        return await call_next()
