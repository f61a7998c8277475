"""FastAPI application factory and main entry point."""
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sportnest import __version__
from sportnest.api import api_router
from sportnest.core.cache import check_cache_connection, close_cache
from sportnest.core.config import settings
from sportnest.core.database import check_database_connection, close_database
from sportnest.core.logging import configure_logging, get_logger
from sportnest.core.middleware import RequestIDMiddleware
from sportnest.core.tracing import configure_tracing, instrument_fastapi_app
from sportnest.repositories.errors import (
    ConfigurationError,
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    RepositoryError,
)

# Configure logging and tracing on module import
configure_logging()
configure_tracing()
logger = get_logger(__name__)

# Most specific first; anything else derived from RepositoryError is a 500
ERROR_STATUS_CODES: list[tuple[type[RepositoryError], int]] = [
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(exc: RepositoryError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Translate repository errors into JSON error responses."""
    status_code = status_code_for(exc)

    if status_code >= 500:
        logger.error(
            "Unhandled repository error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        detail = "Internal server error"
    else:
        logger.info(
            "Request rejected",
            error=str(exc),
            error_type=type(exc).__name__,
            status_code=status_code,
        )
        detail = str(exc)

    return JSONResponse(status_code=status_code, content={"detail": detail})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan context manager for startup/shutdown events."""
    logger.info("Starting SportNest API", version=__version__, environment=settings.environment)

    yield

    logger.info("Shutting down SportNest API")
    await close_database()
    await close_cache()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="SportNest API",
        description="User registration, lookup and search",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(RepositoryError, repository_error_handler)  # type: ignore[arg-type]

    # Health check endpoint
    @app.get("/health", tags=["health"], status_code=200)
    async def health_check() -> dict[str, Any]:
        """Health check with database and cache diagnostics.

        Response format includes:
        - status: "healthy" (all services OK) or "degraded" (any service down)
        - service: API service name
        - version: API version
        - timestamp: ISO 8601 timestamp of health check
        - checks: status and response time of each service dependency
        """
        start_time = time.perf_counter()

        db_start = time.perf_counter()
        db_healthy = await check_database_connection()
        db_response_time = round((time.perf_counter() - db_start) * 1000, 2)

        cache_start = time.perf_counter()
        cache_healthy = await check_cache_connection()
        cache_response_time = round((time.perf_counter() - cache_start) * 1000, 2)

        overall_status = "healthy" if db_healthy and cache_healthy else "degraded"

        logger.info(
            "Health check completed",
            status=overall_status,
            database="healthy" if db_healthy else "unhealthy",
            cache="healthy" if cache_healthy else "unhealthy",
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

        timestamp = datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return {
            "status": overall_status,
            "service": settings.otel_service_name,
            "version": __version__,
            "timestamp": timestamp,
            "checks": {
                "database": {
                    "status": "healthy" if db_healthy else "unhealthy",
                    "response_time_ms": db_response_time,
                },
                "cache": {
                    "status": "healthy" if cache_healthy else "unhealthy",
                    "response_time_ms": cache_response_time,
                },
            },
        }

    app.include_router(api_router)
    instrument_fastapi_app(app)

    logger.info("FastAPI application created", cors_origins=settings.cors_origins_list)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sportnest.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=not settings.is_production,
        log_config=None,  # Use our structlog config
    )
