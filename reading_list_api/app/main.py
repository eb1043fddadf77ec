"""
Main entrypoint for the Reading List API.

This module assembles the FastAPI application: logging, CORS, error
handlers, the ``/api`` routers, the optional debug routes and the
static frontend with its single page fallback.  ``create_app`` builds
and configures the app, which is then instantiated at module import
time as ``app``, e.g.::

    uvicorn reading_list_api.app.main:app --reload

Tests call ``create_app`` directly with their own ``Settings`` and an
already constructed storage backend.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.endpoints import debug
from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.errors import LibraryError, NotFoundError
from .core.logging_config import setup_logging
from .storage import Storage, build_storage

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"error": <message>}``."""

    @app.exception_handler(LibraryError)
    async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _describe_validation_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_api_fallback(app: FastAPI) -> None:
    """Answer unmatched ``/api`` paths with a JSON 404 for every method.

    Must be registered after every API route.
    """

    @app.api_route(
        "/api/{rest:path}",
        methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        include_in_schema=False,
    )
    async def api_not_found(rest: str) -> None:
        raise NotFoundError("Not found")


def register_frontend(app: FastAPI, static_dir: str) -> None:
    """Serve the frontend and fall back to ``index.html`` for client routes.

    Must be registered after every API route since it matches any path.
    Unknown ``/api`` paths get a JSON 404 instead of the entry document.
    """
    static_root = Path(static_dir).resolve()

    @app.get("/{full_path:path}", include_in_schema=False)
    async def frontend(full_path: str) -> FileResponse:
        if full_path == "api" or full_path.startswith("api/"):
            raise NotFoundError("Not found")
        if full_path:
            candidate = (static_root / full_path).resolve()
            if static_root in candidate.parents and candidate.is_file():
                return FileResponse(candidate)
        index = static_root / "index.html"
        if index.is_file():
            return FileResponse(index)
        raise NotFoundError("Not found")


def create_app(settings: Optional[Settings] = None, store: Optional[Storage] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use instead of the module level ``settings``.
    store : Optional[Storage]
        Storage backend to use.  When omitted, the backend named by
        ``settings.storage_backend`` is built on startup and closed on
        shutdown.

    Returns
    -------
    FastAPI
        A configured FastAPI instance ready to be served.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level, settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = app.state.store is None
        if owned:
            app.state.store = build_storage(settings)
        logger.info("Storage: %s", app.state.store.describe())
        try:
            yield
        finally:
            if owned:
                app.state.store.close()
                app.state.store = None

    app = FastAPI(
        title=settings.project_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    if settings.enable_debug_routes:
        app.include_router(debug.router, prefix="/api/debug", tags=["debug"])
    register_api_fallback(app)
    register_frontend(app, settings.static_dir)

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
