"""
Cellar Tracker Backend - FastAPI Application Factory
=====================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────┐ ┌────────────┐ ┌─────────┐ ┌──────┐ ┌──────┐ │
    │  │ Req ID │→│ Rate Limit │→│ Logging │→│ GZip │→│ CORS │ │
    │  └────────┘ └────────────┘ └─────────┘ └──────┘ └──────┘ │
    │                                                          │
    │  Routes:                                                 │
    │  /api/bins  /api/wines  /api/reviews  /api/analytics     │
    │  /api/upload  /uploads/{file}  /health  /api/health      │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ NotFound→404 │ Conflict→409 │ 429      │
    │  FileStorage→500 │ Database→500 │ Unexpected→500         │
    └──────────────────────────────────────────────────────────┘

Error Body:
    Every 4xx/5xx response has the same shape:
        {"error": "<human readable>", "code": "<machine code>",
         "requestId": "<id>", "details": {...}}
    `details` is only present for client errors where it helps the caller
    fix the request.

Lifecycle:
    Startup:  configure logging, create the upload directory
    Shutdown: dispose the database engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    CellarError,
    ConflictError,
    DatabaseError,
    FileStorageError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from app.routes import analytics, bins, health, reviews, uploads, wines

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] app.services.wine_service: Wine created: 3 ...
    Output goes to stdout, which the container runtime collects.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Cellar Tracker Backend %s starting up...", __version__)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", upload_dir.resolve())
    logger.info("Database: %s", "sqlite" if settings.is_sqlite else "postgresql")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Cellar Tracker Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the middleware stack, where the
    # ContextVar is no longer set; request.state still is.
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Render the common error body and attach the request ID header."""
    rid = _request_id(request)
    content: Dict[str, Any] = {"error": message, "code": code, "requestId": rid}
    if details:
        content["details"] = details
    response_headers = dict(headers or {})
    if rid:
        response_headers[REQUEST_ID_HEADER] = rid
    return JSONResponse(status_code=status_code, content=content, headers=response_headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        NotFoundError                            → 404
        ConflictError                            → 409
        RateLimitExceededError                   → 429
        FileStorageError                         → 500
        DatabaseError                            → 500 (generic message)
        CellarError (base)                       → 500
        HTTPException                            → its own status
        Exception (fallback)                     → 500 (generic message)

    Internal details (SQL, paths, stack traces) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return error_response(request, 400, exc.message, "validation_error", exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        # Drop the leading "body"/"path"/"query" segment
        location = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{location}: {message}"
        logger.warning("[%s] Request validation failed: %s", _request_id(request), message)
        return error_response(
            request,
            400,
            message,
            "validation_error",
            {"field": location} if location else None,
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(request, 404, exc.message, "not_found")

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("[%s] Conflict: %s", _request_id(request), exc.message)
        return error_response(request, 409, exc.message, "conflict")

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return error_response(
            request,
            429,
            exc.message,
            "rate_limit_exceeded",
            exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("[%s] File storage error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return error_response(request, 500, exc.message, "storage_error")

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return error_response(request, 500, exc.message, "server_error")

    @app.exception_handler(CellarError)
    async def handle_cellar_error(request: Request, exc: CellarError):
        logger.error("[%s] Unhandled application error: %s | Context: %s", _request_id(request), exc.message, exc.context)
        return error_response(request, 500, exc.message, "server_error")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = "not_found" if exc.status_code == 404 else "http_error"
        return error_response(
            request,
            exc.status_code,
            str(exc.detail),
            code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return error_response(
            request,
            500,
            "An unexpected error occurred. Please try again later.",
            "internal_server_error",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Cellar Tracker API",
        description=(
            "Track a wine collection: storage bins, wines with label photos, "
            "tasting reviews and collection analytics."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → RateLimit → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(bins.router)
    app.include_router(wines.router)
    app.include_router(reviews.router)
    app.include_router(analytics.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


# uvicorn expects `app.main:app` to be importable
app = create_app()
