"""
RR Nagar Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, the /uploads static
       mount and the routers; `app` at module level is what uvicorn serves
       (uvicorn marketplace.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware (outermost first):                           │
    │  Session → RequestID → Logging → GZip → CORS             │
    │                                                          │
    │  Routes:                                                 │
    │  /api/products   /api/categories   /api/*/auth   /health │
    │  /uploads (static product images)                        │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400  Auth→401  Permission→403  NotFound→404  │
    │  Database/FileStorage→500  anything else→500 (generic)   │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from marketplace import __version__
from marketplace.config import settings
from marketplace.database import dispose_engine, init_models
from marketplace.exceptions import (
    AuthenticationError,
    DatabaseError,
    FileStorageError,
    MarketplaceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from marketplace.middleware.logging import RequestLoggingMiddleware
from marketplace.middleware.request_id import RequestIDMiddleware, current_request_id
from marketplace.routes import auth, categories, health, products

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout at LOG_LEVEL; chatty libraries held at WARNING."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  logging, configuration warnings, storage directory, and
              (DB_AUTO_CREATE) missing tables.
    Shutdown: dispose the engine's connection pool.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("RR Nagar Backend %s starting (%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: translation degrades to original text
        logger.warning("Configuration warning: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    if settings.db_auto_create:
        await init_models()
        logger.info("Database tables ensured")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("RR Nagar Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message}
    if details:
        content["details"] = details
    content["requestId"] = current_request_id(request)
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the marketplace exception hierarchy to HTTP responses.

        ValidationError         → 400 validation_error
        AuthenticationError     → 401 not_authenticated
        PermissionDeniedError   → 403 forbidden
        NotFoundError           → 404 not_found
        DatabaseError           → 500 server_error (service-chosen message)
        FileStorageError        → 500 server_error
        MarketplaceError (base) → 500 server_error
        Exception (fallback)    → 500 internal_server_error (generic message)

    TranslationError never reaches here: callers catch it.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", current_request_id(request), exc.message)
        return _error_response(request, 400, "validation_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(request, 401, "not_authenticated", exc.message)

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        return _error_response(request, 403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            current_request_id(request),
            exc.message,
            exc.context,
        )
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            current_request_id(request),
            exc.message,
            exc.context,
        )
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(MarketplaceError)
    async def handle_marketplace_error(request: Request, exc: MarketplaceError):
        logger.error("[%s] Unhandled service error: %s", current_request_id(request), exc.message)
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            current_request_id(request),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="RR Nagar Marketplace API",
        description=(
            "Multi-tenant marketplace backend: supplier product listings, admin "
            "templates, categories with Kannada names, session logins."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: Session → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="none" if settings.is_production else "lax",
        https_only=settings.is_production,
    )

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(products.router)
    app.include_router(categories.router)
    app.include_router(auth.router)
    app.include_router(health.router)

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(storage)), name="uploads")

    return app


app = create_app()
