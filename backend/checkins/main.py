"""
Checkins Backend — FastAPI Application Factory
================================================

What:  Builds and runs the check-in API.
How:   create_app(settings) wires the connection pool, repository,
       middleware, exception handlers and routes. Settings are constructed
       once and stored on app.state, never read from a module global.
Who:   main() is the `checkins-server` console script; tests call
       create_app() directly with their own Settings.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Req ID → Logging → CORS               │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────┐ ┌───────────────┐ ┌─────────┐ │
    │  │ GET /v1/checkins │ │ POST /v1/...  │ │ /health │ │
    │  └──────────────────┘ └───────────────┘ └─────────┘ │
    │                                                     │
    │  Exception Handlers:                                │
    │  Malformed→400 │ TooLarge→413 │ Pool/Persistence→500│
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, verify the pool can reach the store
              (failure aborts startup), optionally create the schema
    Shutdown: dispose the pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as SettingsValidationError

from checkins import __version__
from checkins.config import Settings
from checkins.database import ConnectionPool
from checkins.exceptions import (
    CheckinsError,
    MalformedRequestError,
    PayloadTooLargeError,
    PersistenceError,
    PoolError,
)
from checkins.middleware.logging import RequestLoggingMiddleware
from checkins.middleware.request_id import RequestIDMiddleware, request_id_var
from checkins.routes import checkins, health
from checkins.services.checkin_repository import CheckinRepository

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once at startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our own access log replaces uvicorn's; SQL echo only when asked for
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: verify the store is reachable through the pool. Any failure is
    re-raised, which makes uvicorn abort instead of serving traffic.
    Shutdown: close every pooled connection.
    """
    settings: Settings = app.state.settings
    pool: ConnectionPool = app.state.pool

    setup_logging(settings.log_level)
    logger.info("Checkins backend %s starting up...", __version__)

    try:
        await pool.verify()
    except CheckinsError as e:
        logger.error("Database unreachable at startup: %s | Context: %s", e.message, e.context)
        await pool.dispose()
        raise

    if settings.db_create_schema:
        await pool.create_schema()

    logger.info(
        "Server ready at http://%s:%d (pool size %d, list policy %s)",
        settings.backend_host,
        settings.backend_port,
        pool.max_size,
        settings.checkins_list_policy.value,
    )

    yield

    logger.info("Checkins backend shutting down...")
    await pool.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        MalformedRequestError   → 400 JSON error envelope
        PayloadTooLargeError    → 413 JSON error envelope
        PoolError               → 500 empty body
        PersistenceError        → 500 empty body
        Exception (fallback)    → 500 empty body

    Server-side failures never reach the client in any detail; the cause is
    logged with the request ID.
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
                "details": exc.context,
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
                "details": {"limit_bytes": exc.limit},
                "request_id": rid,
            },
        )

    @app.exception_handler(PoolError)
    async def handle_pool_error(request: Request, exc: PoolError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return Response(status_code=500)

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        # Already logged with traceback by the repository
        rid = request_id_var.get("")
        logger.error("[%s] %s on %s %s", rid, type(exc).__name__, request.method, request.url.path)
        return Response(status_code=500)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return Response(status_code=500)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to run with. Read from the environment when
                  omitted (raises if DATABASE_URL is missing).

    The engine is created here but connects lazily; the lifespan startup
    hook is what proves the store is reachable.
    """
    settings = settings or Settings()

    app = FastAPI(
        title="Checkins API",
        description="Geotagged check-ins: location, crowding level and missing goods.",
        version=__version__,
        lifespan=lifespan,
    )

    pool = ConnectionPool.from_settings(settings)
    app.state.settings = settings
    app.state.pool = pool
    app.state.repository = CheckinRepository(
        pool,
        list_policy=settings.checkins_list_policy,
        query_timeout=settings.db_query_timeout,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(checkins.router)
    app.include_router(health.router)

    return app


def main() -> None:
    """
    Console entry point: load settings, build the app, serve it.

    Exits with status 1 when the configuration is invalid (e.g. DATABASE_URL
    unset). An unreachable database aborts startup inside uvicorn.
    """
    try:
        settings = Settings()
    except SettingsValidationError as e:
        setup_logging()
        logger.error("Configuration error:\n%s", e)
        logger.error("Set DATABASE_URL (and any overrides) and restart the server.")
        raise SystemExit(1)

    setup_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
