"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from surplus_listings.api.listings import router as listings_router
from surplus_listings.app_logging import configure_logging
from surplus_listings.containers import AppContainer
from surplus_listings.domain.errors import (
    ListingValidationError,
    PersistenceTimeoutError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level.upper())
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        windows = app.state.container.safety_policy.windows
        logger.info(
            "Starting surplus listings API (%s)",
            app.state.container.settings.environment,
            extra={"safety_windows": dict(windows.hours)},
        )
        yield

    app = FastAPI(title="Surplus Listings API", lifespan=lifespan)
    app.state.container = container

    app.include_router(listings_router)

    if container.settings.enable_request_logging:

        @app.middleware("http")
        async def log_requests(
            request: Request, call_next: Callable[[Request], Awaitable[Response]]
        ) -> Response:
            started = time.perf_counter()
            response = await call_next(request)
            duration_ms = int((time.perf_counter() - started) * 1000)
            level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                level,
                "API %s %s - %s",
                request.method,
                request.url.path,
                response.status_code,
                extra={"duration_ms": duration_ms},
            )
            return response

    @app.exception_handler(ListingValidationError)
    async def listing_validation_handler(
        request: Request, exc: ListingValidationError
    ) -> JSONResponse:
        return _validation_response(
            [{"field": exc.field, "message": exc.message, "value": exc.value}]
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]),
                "message": error["msg"],
                "value": error.get("input"),
            }
            for error in exc.errors()
        ]
        return _validation_response(details)

    @app.exception_handler(PersistenceTimeoutError)
    async def persistence_timeout_handler(
        request: Request, exc: PersistenceTimeoutError
    ) -> JSONResponse:
        logger.error(
            "Database timeout",
            extra={"operation": exc.operation, "timeout": exc.timeout_seconds},
        )
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            content={
                "success": False,
                "error": "Database Timeout",
                "details": {
                    "message": "Database operation timed out. Please try again."
                },
                "timestamp": _now_iso(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            logger.warning(
                "Route not found",
                extra={"method": request.method, "path": request.url.path},
            )
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "success": False,
                    "error": "Route not found",
                    "message": f"Cannot {request.method} {request.url.path}",
                    "timestamp": _now_iso(),
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": str(exc.detail),
                "timestamp": _now_iso(),
            },
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(
            "Unhandled application error",
            extra={"method": request.method, "path": request.url.path},
        )
        content: dict[str, object] = {
            "success": False,
            "error": "Internal Server Error",
            "timestamp": _now_iso(),
        }
        if container.settings.environment == "local":
            content["details"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": _now_iso(),
            "environment": container.settings.environment,
        }

    return app


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def _validation_response(details: list[dict[str, object]]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            {
                "success": False,
                "error": "Validation Error",
                "details": details,
                "timestamp": _now_iso(),
            }
        ),
    )
