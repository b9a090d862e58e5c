"""
Wanderlust Backend - FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, the error translator and the routers.
Who:   uvicorn (uvicorn wanderlust.main:app) and the test suite.

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │                                                           │
    │  Middleware (outermost first):                            │
    │  GZip → Session → Request ID → Logging → Method Override  │
    │                                                           │
    │  Routes:                                                  │
    │  /listings*  /listings/{id}/reviews*  /signup /login      │
    │  /logout     /uploads/{key}           /health             │
    │                                                           │
    │  Error translator:                                        │
    │  GuardRedirect → 302                                      │
    │  ValidationError / bad path param → 400 error page        │
    │  unmatched route or method → 404 "Page Not Found"         │
    │  anything else → 500 "Something went wrong"               │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, storage directory, and table
              creation for SQLite databases (Postgres uses Alembic)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from wanderlust import __version__
from wanderlust.config import settings
from wanderlust.database import create_tables, dispose_engine
from wanderlust.exceptions import (
    DEFAULT_ERROR_MESSAGE,
    DatabaseError,
    GuardRedirect,
    ValidationError,
    WanderlustError,
)
from wanderlust.middleware.logging import RequestLoggingMiddleware
from wanderlust.middleware.method_override import MethodOverrideMiddleware
from wanderlust.middleware.request_id import RequestIDMiddleware, request_id_var
from wanderlust.routes import health, listings, reviews, uploads, users
from wanderlust.schemas.forms import format_errors
from wanderlust.templating import render_error

logger = logging.getLogger(__name__)

PAGE_NOT_FOUND = "Page Not Found"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] wanderlust.access: GET /listings 200 4.2ms [a1b2c3d4] from 127.0.0.1
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Quiet chatty libraries; our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Wanderlust %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving; the problem is visible in the logs
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    if settings.is_sqlite:
        await create_tables()
        logger.info("SQLite database detected; tables created if missing")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Wanderlust shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Error Translator
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure to a rendered error page (or, for guards, a redirect).

    Handler hierarchy:
        GuardRedirect            → 302 to exc.location (flash already queued)
        WanderlustError          → exc.status_code, exc.message
            DatabaseError / 5xx  → generic "Something went wrong"
        RequestValidationError   → 400 (malformed path parameter)
        HTTPException 404 / 405  → 404 "Page Not Found"
        Exception (fallback)     → 500 "Something went wrong"

    Internal details (SQL, paths, stack traces) are logged, never rendered.
    """

    @app.exception_handler(GuardRedirect)
    async def handle_guard_redirect(request: Request, exc: GuardRedirect):
        return RedirectResponse(exc.location, status_code=302)

    @app.exception_handler(WanderlustError)
    async def handle_wanderlust_error(request: Request, exc: WanderlustError):
        rid = request_id_var.get("")
        status_code = exc.status_code or 500

        if isinstance(exc, DatabaseError) or status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid, type(exc).__name__, exc.message, exc.context,
            )
            message = exc.message if not isinstance(exc, DatabaseError) else DEFAULT_ERROR_MESSAGE
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            message = exc.message or DEFAULT_ERROR_MESSAGE

        return render_error(request, status_code, message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = ValidationError(format_errors(exc.errors()))
        logger.warning("[%s] Bad request parameters: %s", request_id_var.get(""), error.message)
        return render_error(request, error.status_code, error.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Unknown path and known path with the wrong method both read as missing pages
        if exc.status_code in (404, 405):
            return render_error(request, 404, PAGE_NOT_FOUND)
        message = exc.detail if isinstance(exc.detail, str) else DEFAULT_ERROR_MESSAGE
        return render_error(request, exc.status_code, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return render_error(request, 500, DEFAULT_ERROR_MESSAGE)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Wanderlust",
        description="Server-rendered marketplace for travel stays: listings, reviews and accounts.",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first, so this reads innermost → outermost.

    # Rewrites POST ?_method=... before the router sees the request
    app.add_middleware(MethodOverrideMiddleware)

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)

    # Must wrap the exception handlers so guard flashes are saved
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(listings.router)
    app.include_router(reviews.router)
    app.include_router(users.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


app = create_app()
