import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from sqlgate.api.main import api_router
from sqlgate.api.responses import error_response
from sqlgate.core.config import settings
from sqlgate.core.errors import (
    ConnectionError,
    QueryError,
    QueryTimeoutError,
    ResultTooLargeError,
)
from sqlgate.core.store import set_driver_log_level
from sqlgate.engines.sql import QueryExecutor

logging.basicConfig(level=settings.LOG_LEVEL)
if settings.SQL_ECHO:
    set_driver_log_level(logging.INFO)

_logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the single executor at startup; a store that cannot be opened aborts startup."""
    app.state.executor = QueryExecutor(
        settings.DATABASE_URL, statement_timeout=settings.STATEMENT_TIMEOUT
    )
    try:
        yield
    finally:
        app.state.executor.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Global exception handlers: standardized error response format
# ---------------------------------------------------------------------------


@app.exception_handler(QueryTimeoutError)
async def query_timeout_handler(request: Request, exc: QueryTimeoutError) -> JSONResponse:
    return error_response(504, str(exc))


@app.exception_handler(ResultTooLargeError)
async def result_too_large_handler(request: Request, exc: ResultTooLargeError) -> JSONResponse:
    """Result above MAX_RESULT_ROWS; the statement was rolled back."""
    return error_response(413, str(exc), {"row_count": exc.row_count, "limit": exc.limit})


@app.exception_handler(QueryError)
async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
    """Statement failed and was rolled back; the store is still usable."""
    return error_response(400, str(exc))


@app.exception_handler(ConnectionError)
async def connection_error_handler(request: Request, exc: ConnectionError) -> JSONResponse:
    _logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    return error_response(503, "Store unavailable")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 422 with a human-readable message instead of raw Pydantic errors."""
    errors = exc.errors()
    messages = []
    for err in errors:
        loc = " → ".join(str(part) for part in err.get("loc", []) if part != "body")
        msg = err.get("msg", "Invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return error_response(422, "; ".join(messages))


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all for unhandled exceptions: log and return 500 with safe message."""
    _logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    message = "Internal server error"
    if settings.ENVIRONMENT == "local":
        message = f"Internal server error: {exc}"
    return error_response(500, message)


# Set all CORS enabled origins
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
