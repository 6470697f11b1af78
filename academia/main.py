"""
Academia API — FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn academia.main:app),
       or by `python -m academia` / the `academia` console script.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → CORS           │
    │                                                     │
    │  Routes:      /estudiantes (CRUD)   /health         │
    │                                                     │
    │  Exception Handlers:                                │
    │   Validation/Unique→400 │ NotFound→404 │ Store→500  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Reconcile the database schema (destructive when
       RESET_SCHEMA_ON_START is set); failure aborts startup,
       so uvicorn never binds the port
    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from academia import __version__
from academia.config import Settings, settings
from academia.database import dispose_engine, init_schema
from academia.exceptions import (
    AcademiaError,
    NotFoundError,
    StoreUnavailableError,
    UniqueConstraintError,
    ValidationError,
)
from academia.middleware.logging import RequestLoggingMiddleware
from academia.middleware.request_id import RequestIDMiddleware, request_id_var
from academia.routes import health, students
from academia.services.student_service import StudentService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the entire application.

    Called once during app startup, before any other initialization.
    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    if not settings.db_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, then schema reconciliation. The server only starts
    accepting connections after this block reaches `yield`.
    Shutdown: dispose the engine.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Academia API %s starting up...", __version__)

    try:
        await init_schema(reset=settings.reset_schema_on_start)
    except Exception:
        logger.critical("Database initialisation failed; the server will not start", exc_info=True)
        await dispose_engine()
        raise

    logger.info("Database ready: %s", settings.database_url)
    logger.info("Server listening on http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Academia API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    code: str,
    message: str,
    details: Optional[dict] = None,
    message_key: str = "error",
) -> dict:
    """
    Error payload. The human-readable message sits under `error` (400/500)
    or `mensaje` (404); `codigo` carries the machine-readable code.
    """
    body = {message_key: message, "codigo": code, "request_id": request_id_var.get("")}
    if details is not None:
        body["detalles"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        UniqueConstraintError   → 400 Bad Request
        RequestValidationError  → 400 Bad Request (malformed JSON / wrong types)
        NotFoundError           → 404 Not Found
        StoreUnavailableError   → 500 Internal Server Error (generic message)
        AcademiaError (base)    → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Internal details (driver errors, tracebacks) are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        details = {"field": exc.field} if exc.field else None
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, details),
        )

    @app.exception_handler(UniqueConstraintError)
    async def handle_unique_violation(request: Request, exc: UniqueConstraintError):
        logger.warning("[%s] Unique constraint violated on %s", request_id_var.get(""), exc.field)
        return JSONResponse(
            status_code=400,
            content=_error_body("unique_violation", exc.message, {"field": exc.field}),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Body that is not JSON, or fields of the wrong type."""
        details = {}
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"] if x != "body") or "body"
            details[field] = error["msg"]
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", "El cuerpo de la petición no es válido", details),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message, message_key="mensaje"),
        )

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(AcademiaError)
    async def handle_application_error(request: Request, exc: AcademiaError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Unknown paths and unsupported methods keep their status code."""
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                "http_error",
                str(exc.detail),
                message_key="mensaje" if exc.status_code == 404 else "error",
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace is logged server-side only."""
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "Ocurrió un error inesperado. Intente nuevamente.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Builds the single StudentService instance and stores it on app.state,
    where get_student_service() hands it to every request.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Academia API",
        description="CRUD de estudiantes respaldado por SQLite.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.student_service = StudentService()

    # ── Register Middleware ───────────────────────────────────────────────
    # Execution order is the reverse of registration: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(students.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with the configured host and port."""
    uvicorn.run(
        "academia.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
