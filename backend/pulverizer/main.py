"""
Payload Pulverizer — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware, routes, exception handlers
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       owning its own CounterStore.
Who:   Called by the CLI (pulverizer.cli) and by the test suite; uvicorn can
       also load the module-level `app` (uvicorn pulverizer.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: RequestID → Logging → BodyLimit → GZip → CORS│
    │                                                          │
    │  Routes:                                                 │
    │   POST /pulverize /blackhole /shred /burn                │
    │   POST /validate-before-destroy                          │
    │   GET  /stats /stats/detailed /ping                      │
    │                                                          │
    │  Exception Handlers:                                     │
    │   MalformedRequest→400 │ PayloadTooLarge→413 │ Store→500 │
    │                                                          │
    │  app.state.counter_store ── injected into every handler  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, open the counter store (create schema,
              seed endpoints). A store that cannot be opened aborts startup.
    Shutdown: dispose the store's connection pool.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from pulverizer import __version__
from pulverizer.config import Settings, settings as default_settings
from pulverizer.exceptions import (
    MalformedRequestError,
    PayloadTooLargeError,
    PulverizerError,
    StoreUnavailableError,
)
from pulverizer.middleware.body_limit import BodySizeLimitMiddleware
from pulverizer.middleware.logging import RequestLoggingMiddleware
from pulverizer.middleware.request_id import RequestIDMiddleware, request_id_var
from pulverizer.routes import destroy, health, stats, validate
from pulverizer.services.counter_store import CounterStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (container runtimes capture it)
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("markdown_it").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the counter store on startup and close it on shutdown.

    If the store cannot be opened, StoreUnavailableError propagates out of
    startup: uvicorn reports the failure and the CLI exits non-zero.
    """
    app_settings: Settings = app.state.settings
    store: CounterStore = app.state.counter_store

    if app.state.configure_logging:
        setup_logging(app_settings.log_level)

    logger.info("=" * 60)
    logger.info("Payload Pulverizer %s starting up...", __version__)
    logger.info("Using database at: %s", app_settings.db_path)

    try:
        await store.open()
    except StoreUnavailableError as e:
        logger.error("Cannot open counter store: %s | Context: %s", e.message, e.context)
        raise

    logger.info("Server ready at http://%s:%d", app_settings.host, app_settings.port)
    logger.info("=" * 60)

    yield

    logger.info("Payload Pulverizer shutting down...")
    await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        MalformedRequestError   → 400 Bad Request
        PayloadTooLargeError    → 413 Payload Too Large
        StoreUnavailableError   → 500 Internal Server Error
        PulverizerError (base)  → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Responses never include the `context` dict; it is logged server-side.
    """

    @app.exception_handler(MalformedRequestError)
    async def handle_malformed_request(request: Request, exc: MalformedRequestError):
        rid = request_id_var.get("")
        logger.warning("[%s] Malformed request: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "malformed_request",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(PayloadTooLargeError)
    async def handle_payload_too_large(request: Request, exc: PayloadTooLargeError):
        rid = request_id_var.get("")
        logger.warning("[%s] Payload too large: %s", rid, exc.context)
        return JSONResponse(
            status_code=413,
            content={
                "error": "payload_too_large",
                "message": exc.message,
                "details": {"limit": exc.limit},
                "request_id": rid,
            },
        )

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        rid = request_id_var.get("")
        logger.error("[%s] Counter store error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "store_unavailable",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(PulverizerError)
    async def handle_pulverizer_error(request: Request, exc: PulverizerError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the log only, never into the response."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CounterStore] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment-derived settings
        store: Counter store handle; defaults to a CounterStore on
            settings.db_path. Passing one lets tests inject a fake.
        configure_logging: Whether startup reconfigures the root logger

    Returns:
        Fully configured FastAPI instance. The store is opened by the
        lifespan, not here, so building an app has no side effects.
    """
    settings = settings or default_settings
    store = store or CounterStore(settings)

    app = FastAPI(
        title="Payload Pulverizer",
        description=(
            "Send us your payloads. We destroy them with flair and keep count. "
            "Validate them first if you must know what you lost."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.counter_store = store
    app.state.configure_logging = configure_logging

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition:
    # RequestID → Logging → BodyLimit → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    # The fire art alone is well above this
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_payload_bytes)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(destroy.router)
    app.include_router(validate.router)
    app.include_router(stats.router)
    app.include_router(health.router)

    return app


# uvicorn expects `pulverizer.main:app` to be importable
app = create_app()
