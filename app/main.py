"""
Lavandaria API — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app) and by
       the test suite (one fresh app per test).

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                      FastAPI App                          │
    │                                                           │
    │  Middleware Chain (outermost first):                      │
    │  CORS → Correlation ID → Access Log → Login Rate Limit →  │
    │  Session → GZip                                           │
    │                                                           │
    │  Route dependencies:                                      │
    │  Role Gate → Pagination / JSON body → DB session → handler│
    │                                                           │
    │  Exception Handlers (all render the failure envelope):    │
    │  LavandariaError → its status │ RequestValidation → 400   │
    │  HTTPException → its status   │ anything else → 500       │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate configuration
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import JSONResponse

from app import __version__
from app.config import settings
from app.context import CORRELATION_HEADER, get_correlation_id
from app.database import dispose_engine
from app.envelope import failure
from app.exceptions import LavandariaError, RateLimitExceededError, ValidationError
from app.middleware.correlation import CorrelationIdMiddleware
from app.middleware.logging import CorrelationIdLogFilter, RequestLoggingMiddleware
from app.middleware.rate_limit import LoginRateLimitMiddleware, RateLimiter
from app.routes import auth, clients, health, laundry_orders, users

logger = logging.getLogger(__name__)

HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_REQUIRED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    415: "UNSUPPORTED_MEDIA_TYPE",
    429: "RATE_LIMIT_EXCEEDED",
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s] %(message)s

    The correlation id comes from CorrelationIdLogFilter, attached to the
    stdout handler, so every record (ours and third-party) carries it.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Lavandaria API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and the error itself stay visible
        logger.error("Configuration error: %s", str(e))

    logger.info(
        "Login rate limit: %d attempts per %ds",
        settings.login_rate_limit_max,
        settings.login_rate_limit_window,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Lavandaria API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        LavandariaError         → exc.status_code with exc.code
        RequestValidationError  → 400 VALIDATION_ERROR with field details
        HTTPException           → its status (unknown route, wrong method, ...)
        Exception               → 500 SERVER_ERROR (CorrelationIdMiddleware)

    Internal details (context, SQL, stack traces) are logged under the
    correlation id and never returned.
    """

    @app.exception_handler(LavandariaError)
    async def handle_app_error(request: Request, exc: LavandariaError) -> JSONResponse:
        cid = get_correlation_id()
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", cid, exc.code, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", cid, exc.code, exc.message)

        extra = {}
        headers = None
        if isinstance(exc, ValidationError) and exc.field:
            extra["details"] = [{"field": exc.field, "message": exc.message}]
        if isinstance(exc, RateLimitExceededError):
            extra["retryAfter"] = exc.retry_after
            headers = {"Retry-After": str(exc.retry_after)}

        return failure(exc.status_code, exc.message, code=exc.code, headers=headers, **extra)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body",
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.info("[%s] Validation failed: %s", get_correlation_id(), details)
        return failure(400, "Validation failed", code="VALIDATION_ERROR", details=details)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = HTTP_STATUS_CODES.get(exc.status_code, "SERVER_ERROR" if exc.status_code >= 500 else "ERROR")
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return failure(exc.status_code, message, code=code, headers=getattr(exc, "headers", None))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(login_limiter: Optional[RateLimiter] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        login_limiter: limiter for the login routes; defaults to an
            in-memory limiter built from settings. Tests pass one with an
            injected clock.
    """
    app = FastAPI(
        title="Lavandaria API",
        description=(
            "Operations backend for a laundry and short-stay cleaning business: "
            "staff and client sessions, user management and laundry orders."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost. Execution order on the way in:
    # CORS → CorrelationId → RequestLogging → LoginRateLimit → Session → GZip
    # CORS outermost: 429 and 500 responses carry its headers as well.
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )
    app.add_middleware(LoginRateLimitMiddleware, limiter=login_limiter)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER, "Retry-After"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(clients.router)
    app.include_router(laundry_orders.router)

    return app


app = create_app()
