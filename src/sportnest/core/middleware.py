"""Request ID middleware for request correlation and tracing."""
import time
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

import structlog
from fastapi import Request, Response
from opentelemetry.trace.status import Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware

from sportnest.core.logging import get_logger
from sportnest.core.tracing import create_span, get_tracer

REQUEST_ID_HEADER = "X-Request-ID"

# Context variable for storing request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = get_logger(__name__)
tracer = get_tracer(__name__)


def _incoming_request_id(request: Request) -> str | None:
    """Caller-supplied request ID, accepted only when it is a valid UUID."""
    value = request.headers.get(REQUEST_ID_HEADER)
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns every request an ID and logs its lifecycle.

    The ID is taken from an incoming ``X-Request-ID`` header when the caller
    sent a valid UUID, generated otherwise. It is echoed in the response
    header, bound to structlog's contextvars for the duration of the request
    and attached to the request span when tracing is enabled.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = _incoming_request_id(request) or str(uuid.uuid4())
        request_id_var.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)

        with create_span(
            tracer,
            f"{request.method} {request.url.path}",
            **{
                "http.method": request.method,
                "http.url": str(request.url),
                "http.route": request.url.path,
                "request.id": request_id,
                "user_agent.original": request.headers.get("user-agent", ""),
            }
        ) as span:
            start_time = time.perf_counter()

            logger.info(
                "Request started",
                method=request.method,
                path=request.url.path,
                query_params=str(request.query_params) if request.query_params else None,
            )

            try:
                response = await call_next(request)
                response.headers[REQUEST_ID_HEADER] = request_id

                duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

                span.set_attribute("http.status_code", response.status_code)
                span.set_attribute("request.duration_ms", duration_ms)
                if response.status_code >= 500:
                    span.set_status(Status(StatusCode.ERROR, f"HTTP {response.status_code}"))
                else:
                    span.set_status(Status(StatusCode.OK))

                logger.info(
                    "Request completed",
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                )

                return response

            except Exception as exc:
                duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

                span.record_exception(exc)
                span.set_attribute("request.duration_ms", duration_ms)
                span.set_status(Status(StatusCode.ERROR, str(exc)))

                logger.error(
                    "Request failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    duration_ms=duration_ms,
                    exc_info=True,
                )
                raise

            finally:
                structlog.contextvars.clear_contextvars()


def get_request_id() -> str:
    """Get the current request ID from context.

    Returns:
        The current request ID, or empty string if no request is active.
    """
    return request_id_var.get("")
