"""
TripMatch Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers and
       returns the app; uvicorn serves `tripmatch.main:app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │   RateLimit → RequestID → Logging → GZip → CORS      │
    │                                                      │
    │  Routes:                                             │
    │   /api/v1/events, /public/events, /suggestions,      │
    │   /tags, /interests, /preferences, /chat, /history   │
    │   /api/files/{path}      /health                     │
    │                                                      │
    │  Exception Handlers:                                 │
    │   TripMatchError → status from its kind              │
    │   Exception      → 500                               │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration warnings, storage directory
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from tripmatch import __version__
from tripmatch.config import settings
from tripmatch.database import dispose_engine
from tripmatch.exceptions import (
    CircuitBreakerOpenError,
    RateLimitExceededError,
    StorageServiceError,
    TripMatchError,
)
from tripmatch.middleware.logging import RequestLoggingMiddleware
from tripmatch.middleware.rate_limit import RateLimitMiddleware
from tripmatch.middleware.request_id import RequestIDMiddleware, request_id_var
from tripmatch.routes import (
    chat,
    events,
    files,
    health,
    history,
    preferences,
    public,
    suggestions,
    tags,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
RETRY_CONTEXT_KEYS = {"retry_after", "recovery_time"}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Chatty third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("TripMatch Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and the error log make the problem visible
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if settings.storage_provider == "local":
        from pathlib import Path
        storage_root = Path(settings.storage_root)
        storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("Storage directory: %s", storage_root.resolve())
    else:
        logger.info("Storage provider: WebDAV at %s", settings.webdav_base_url)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("TripMatch Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _retry_after(exc: TripMatchError):
    if isinstance(exc, RateLimitExceededError):
        return exc.retry_after
    if isinstance(exc, CircuitBreakerOpenError):
        return exc.recovery_time
    if isinstance(exc, StorageServiceError):
        return exc.retry_after
    return None


def error_body(exc: TripMatchError, request_id: str) -> dict:
    """
    `{"error", "message", "details", "request_id"}`.

    Server errors never echo their context: it can hold SQL, paths or OS
    error strings.
    """
    body = {
        "error": exc.kind.value,
        "message": exc.message,
        "request_id": request_id or None,
    }
    if exc.status_code < 500:
        body["details"] = exc.context or None
    elif exc.status_code == 503:
        body["details"] = {
            k: v for k, v in exc.context.items() if k in RETRY_CONTEXT_KEYS
        } or None
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to JSON responses.

        TripMatchError  → exc.status_code, body keyed by exc.kind
        Exception       → 500 with a generic message; stack trace logged
    """

    @app.exception_handler(TripMatchError)
    async def handle_tripmatch_error(request: Request, exc: TripMatchError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context
            )
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {}
        retry_after = _retry_after(exc)
        if retry_after:
            headers["Retry-After"] = str(retry_after)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc, rid),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid or None,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="TripMatch API",
        description=(
            "Create and join trip events, swipe through ranked suggestions, "
            "and chat with confirmed members."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executed in reverse order of addition:
    # RequestID → Logging → RateLimit → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    for module in (events, public, suggestions, tags, preferences, chat, history):
        app.include_router(module.router, prefix=API_PREFIX)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
