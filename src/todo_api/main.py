from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .repositories import DatabaseError, TodoStore, open_store
from .routers import health as health_router
from .routers import todos as todos_router
from .settings import get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

openapi_tags = [
    {"name": "health", "description": "Service health and database connectivity."},
    {"name": "todos", "description": "CRUD operations for Todo items."},
]

ENDPOINTS = [
    ("GET", "/todos"),
    ("POST", "/todos"),
    ("GET", "/todos/{id}"),
    ("PUT", "/todos/{id}"),
    ("DELETE", "/todos/{id}"),
    ("GET", "/health"),
]


def _describe_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """
    Turn pydantic/FastAPI error details into the single plain-text line sent
    back with a 400.
    """
    for err in errors:
        if err.get("type") == "json_invalid":
            reason = (err.get("ctx") or {}).get("error", err.get("msg"))
            return f"Invalid JSON: {reason}"
    for err in errors:
        if err.get("type") == "value_error":
            # ValueError raised by a schema validator, e.g. the empty title check
            return str((err.get("ctx") or {}).get("error", err.get("msg")))
    if not errors:
        return "Invalid request body"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    if loc:
        return f"Invalid request body: {loc}: {first.get('msg')}"
    return f"Invalid request body: {first.get('msg')}"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    """
    Malformed JSON, wrongly typed fields and empty titles are all client
    errors: answer 400 with a plain-text reason.
    """
    return PlainTextResponse(_describe_validation_errors(list(exc.errors())), status_code=400)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """Render HTTP errors (400/404/405...) as plain text."""
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


async def database_exception_handler(request: Request, exc: DatabaseError) -> PlainTextResponse:
    """
    Database errors become a 500 carrying the driver's message verbatim.
    """
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return PlainTextResponse(str(exc), status_code=500)


# PUBLIC_INTERFACE
def create_app(store: TodoStore) -> FastAPI:
    """
    Build the FastAPI application around an already bootstrapped store.

    The store is kept on app.state and handed to handlers through the
    get_store dependency; it is closed when the application shuts down.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        store.close()

    app = FastAPI(
        title="Todo API",
        description="CRUD service for todo items stored in a relational database.",
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DatabaseError, database_exception_handler)  # type: ignore[arg-type]

    app.include_router(todos_router.router)
    app.include_router(health_router.router)
    return app


# PUBLIC_INTERFACE
def configure_logging(level: str) -> None:
    """Configure root logging for the process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


# PUBLIC_INTERFACE
def run() -> None:
    """
    Process entry point: load settings, bootstrap the database and serve.

    A failure to connect, ping or create the table is fatal: it is logged and
    the process exits with status 1.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        store = open_store(settings)
    except DatabaseError as exc:
        logger.critical("Database bootstrap failed: %s", exc)
        sys.exit(1)

    app = create_app(store)

    logger.info("Todo API listening on %s:%s", settings.host, settings.port)
    for method, path in ENDPOINTS:
        logger.info("  %-6s http://localhost:%s%s", method, settings.port, path)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
