"""
api/main.py -- FastAPI application entry point for Courier.

Run with:  uvicorn api.main:app --reload

Lifespan builds the component graph once at startup and keeps it on
app.state:

  CredentialStore   <- Settings.database_url
  PasswordHasher    <- Settings.bcrypt_work_factor
  TokenService      <- Settings.secret_key, Settings.token_expire_seconds
  IdentityManager   <- store, hasher
  AuthorizationGuard<- tokens, identity
  MessageDirectory  <- store

Route handlers read these from request.app.state; nothing is a module-level
global, so tests swap the whole graph by replacing the lifespan.

Domain exceptions (auth/exceptions.py) are mapped to HTTP status codes by the
exception handlers at the bottom of this module.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.messages import router as messages_router
from api.routes.v1.users import router as users_router
from auth.exceptions import AuthenticationError, ConflictError, ForbiddenError, NotFoundError
from auth.guard import AuthorizationGuard
from auth.identity import IdentityManager
from auth.passwords import PasswordHasher
from auth.store import CredentialStore
from auth.tokens import TokenService
from core.config import get_settings
from messages.directory import MessageDirectory

API_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("courier.api")


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def wire_components(app: FastAPI, store: CredentialStore, hasher: PasswordHasher, tokens: TokenService) -> None:
    """Attach the service graph to app.state.

    Shared by the production lifespan and the test lifespan in
    tests/conftest.py so both wire identical graphs.
    """
    identity = IdentityManager(store, hasher)
    app.state.store = store
    app.state.tokens = tokens
    app.state.identity = identity
    app.state.guard = AuthorizationGuard(tokens, identity)
    app.state.directory = MessageDirectory(store)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the component graph on startup; dispose the store on shutdown."""
    logger.info("Courier API starting up")
    settings = get_settings()
    store = CredentialStore(settings.database_url)
    wire_components(
        app,
        store=store,
        hasher=PasswordHasher(work_factor=settings.bcrypt_work_factor),
        tokens=TokenService(settings.secret_key, expire_seconds=settings.token_expire_seconds),
    )
    logger.info(
        "Auth initialized (bcrypt work factor=%d, token expiry=%ss)",
        settings.bcrypt_work_factor,
        settings.token_expire_seconds or "none",
    )

    yield

    store.close()
    logger.info("Courier API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Courier API",
    description="User identity, bearer tokens and access-controlled direct messages.",
    version=API_VERSION,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Only method, path, status, latency and client are logged --
# never headers (they carry the bearer token) or bodies (they carry passwords).
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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])
app.include_router(messages_router, prefix="/api/v1", tags=["Messages"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return _error(409, "conflict", str(exc))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(404, "not_found", str(exc))


@app.exception_handler(AuthenticationError)
async def authentication_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """401 with a WWW-Authenticate challenge. Cache-Control: no-store, as on token responses."""
    response = _error(401, "unauthorized", str(exc))
    response.headers["WWW-Authenticate"] = "Bearer"
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(ForbiddenError)
async def forbidden_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
    return _error(403, "forbidden", str(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation.

    exc.errors() echoes the offending input; password values are masked
    before the list is rendered.
    """
    errors = []
    for err in exc.errors():
        if "password" in err.get("loc", ()):
            err = {**err, "input": "***"}
        errors.append(err)
    return _error(422, "validation_error", "Request validation failed.", str(errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (unknown path, wrong method) in the same envelope."""
    response = _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    try:
        database = "ok" if request.app.state.store.ping() else "error"
    except Exception:
        logger.exception("Health check: database ping failed")
        database = "error"
    return HealthResponse(version=API_VERSION, components={"app": "ok", "database": database})
