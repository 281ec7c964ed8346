"""
api/main.py -- FastAPI application entry point for campusnav.

Run with:  python main.py
           uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins

Lifespan builds every process-wide service exactly once and hangs it on
app.state (settings, engine, user store, campus store, token service,
password hasher). Dependencies and handlers read them from request.app.state,
never from module globals; tests patch the lifespan to inject their own.

Routers are mounted under Settings.base_path: /register at the prefix root,
everything else under <prefix>/api.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import register_router
from api.routes.auth import router as auth_router
from api.routes.campus import router as campus_router
from api.routes.users import router as users_router
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenService
from campus.store import CampusStore
from core.config import get_settings
from core.db import create_db_engine
from core.errors import AppError

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("campusnav.api")

# Fails fast (ValueError) when SECRET_KEY is missing outside DEBUG mode.
settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Both stores share one Engine (one connection pool), disposed
    once on shutdown.
    """
    logger.info("campusnav API starting up")
    app.state.settings = settings
    app.state.engine = create_db_engine(settings.database_url)
    app.state.user_store = UserStore(engine=app.state.engine)
    app.state.campus = CampusStore(engine=app.state.engine)
    app.state.tokens = TokenService(settings.secret_key, ttl_seconds=settings.token_expire_seconds)
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    logger.info(
        "Stores initialized (backend=%s, admin_writes=%s)",
        app.state.engine.dialect.name,
        settings.require_admin_for_writes,
    )

    yield

    app.state.engine.dispose()
    logger.info("campusnav API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="campusnav API",
    description="Campus navigation and administration backend: places, buildings, blocks, labs, evaluations.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler; wall-clock time around call_next is the reported latency.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(register_router, prefix=settings.base_path, tags=["Auth"])
app.include_router(auth_router, prefix=f"{settings.base_path}/api", tags=["Auth"])
app.include_router(users_router, prefix=f"{settings.base_path}/api", tags=["Users"])
app.include_router(campus_router, prefix=f"{settings.base_path}/api", tags=["Campus"])
# The SPA fallback router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, detail: ErrorDetail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=detail).model_dump(exclude_none=True),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map domain errors (core.errors) to their status and the shared envelope."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return _error_response(
        exc.status_code,
        ErrorDetail(code=exc.code, message=exc.message, detail=exc.detail, fields=exc.fields),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the body or query parameters cannot be parsed into the declared types."""
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return _error_response(
        400,
        ErrorDetail(
            code="validation_error",
            message="Request validation failed.",
            detail=str(exc.errors()),
            fields=fields or None,
        ),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it -- str(dict) produces a Python repr,
    not JSON.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error_response(exc.status_code, ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail)))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors (store unreachable, bad SQL, ...).

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, ErrorDetail(code="internal_error", message="An unexpected error occurred."))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get(f"{settings.base_path}/api/health", tags=["Health"], response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    """Return liveness plus a one-statement database round-trip check."""
    database = "ok"
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database = "error"
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=__version__,
        components={"app": "ok", "database": database},
    )
