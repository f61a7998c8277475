"""Request handlers and the pipeline that dispatches to them."""

from sportnest.handlers.pipeline import (
    Command,
    Mediator,
    PipelineBehavior,
    Query,
    Request,
    RequestHandler,
)
from sportnest.handlers.transaction import TransactionBehavior
from sportnest.handlers.users import (
    USER_HANDLERS,
    GetUserByIdQuery,
    RegisterUserCommand,
    SearchUsersByNameQuery,
)

__all__ = [
    "Command",
    "GetUserByIdQuery",
    "Mediator",
    "PipelineBehavior",
    "Query",
    "RegisterUserCommand",
    "Request",
    "RequestHandler",
    "SearchUsersByNameQuery",
    "TransactionBehavior",
    "USER_HANDLERS",
]
