"""
api/main.py -- FastAPI application entry point for Alumnet.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (registration order; Starlette runs the last registered first):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan builds the credential/session components once per process and
hangs them on app.state; shutdown disposes the store's engine.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.accounts import router as accounts_router
from api.routes.v1.auth import router as auth_router
from auth.errors import CorruptCredentialError
from auth.guard import SessionGuard
from auth.passwords import CredentialHasher
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("alumnet.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the account store, service and guard; dispose the store on shutdown.

    The guard and the service share one TokenIssuer.
    """
    logger.info("Alumnet API starting up")
    store = AccountStore(db_url=_settings.database_url)
    issuer = TokenIssuer(_settings.secret_key, lifetime_seconds=_settings.token_expire_seconds)
    app.state.account_store = store
    app.state.auth_service = AuthService(store, CredentialHasher(rounds=_settings.bcrypt_rounds), issuer)
    app.state.session_guard = SessionGuard(issuer)
    logger.info(
        "Auth initialized (bcrypt_rounds=%d, token_expire_seconds=%d)",
        _settings.bcrypt_rounds,
        _settings.token_expire_seconds,
    )

    yield

    app.state.account_store.close()
    logger.info("Alumnet API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Alumnet API",
    description="Alumni accounts: registration, login, and bearer-token sessions.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware (the request meets them in reverse registration order)
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """One line per request. Headers and bodies are never logged; they carry secrets and tokens."""
    start = time.perf_counter()
    response = await call_next(request)
    client = request.client.host if request.client else "-"
    logger.info(
        "%s %s -> %d (%.1fms, client=%s)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - start) * 1000,
        client,
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(accounts_router, prefix="/api/v1", tags=["Accounts"])


# ---------------------------------------------------------------------------
# Exception handlers -- every error body is {"error": {code, message, detail?}}
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None, headers=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers)


def _internal_error() -> JSONResponse:
    return _error(500, "internal_error", "An unexpected error occurred.")


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with Retry-After.

    Plain def: SlowAPIMiddleware calls this handler directly and returns its
    result, so it must not be a coroutine function.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    return _error(429, "rate_limited", "Too many requests.", str(exc), headers={"Retry-After": str(retry_after)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 listing field locations and messages. Submitted values are not echoed."""
    errors = [{"loc": e.get("loc"), "msg": e.get("msg")} for e in exc.errors()]
    return _error(422, "validation_error", "Request validation failed.", str(errors))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Routes raise with a {"code", "message"} dict; WWW-Authenticate on 401 rides in exc.headers.
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail), headers=exc.headers)


@app.exception_handler(CorruptCredentialError)
async def corrupt_credential_handler(request: Request, exc: CorruptCredentialError) -> JSONResponse:
    """Unparseable stored hash: an operator problem, reported to the client as a plain 500."""
    logger.error("Corrupt stored credential on %s %s: %s", request.method, request.url.path, exc)
    return _internal_error()


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _internal_error()


# ---------------------------------------------------------------------------
# Health (not rate-limited)
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    try:
        db_ok = request.app.state.account_store.ping()
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        db_ok = False
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
