"""
api/routes/v1/auth.py -- Registration, login, and session endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account; 201 profile view, 409 on duplicate
  POST /api/v1/auth/login      -- verify credentials; returns a bearer token
  GET  /api/v1/auth/session    -- identity resolved from the bearer token (requires auth)
  POST /api/v1/auth/password   -- change own password (requires auth)

Security:
  [H2] POST /login and POST /register are rate-limited per IP.
  [C1] AuthService.login() provides timing equalization -- use it, never inline
       find_by_email() + verify().
  [M5] Cache-Control: no-store on login and register responses.
  Login returns the same 401 for an unknown email and a wrong password.
  A corrupt stored hash is NOT a login failure: CorruptCredentialError
  propagates to the handler in api/main.py and becomes a generic 500.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_limit, register_limit
from api.models import (
    AccountResponse,
    LoginRequest,
    LoginResponse,
    PasswordChange,
    PublicAccountResponse,
    RegisterRequest,
    SessionResponse,
)
from auth.dependencies import get_auth_service, require_session
from auth.errors import DuplicateAccountError, InvalidCredentialsError
from auth.models import SessionClaim
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/register:  public -- account creation precedes any session
# - POST /api/v1/auth/login:     public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/session:   requires auth (require_session)
# - POST /api/v1/auth/password:  requires auth (require_session)
router = APIRouter()

_BAD_CREDENTIALS = {"code": "bad_credentials", "message": "Invalid email or password."}


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(register_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=AccountResponse, status_code=201)
def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> AccountResponse:
    """Create a member account. The response never includes the password or its hash.

    Duplicate emails (compared case-insensitively) return 409. The check is
    the database's UNIQUE constraint, so two concurrent registrations for the
    same email cannot both succeed.
    """
    try:
        profile = service.register(
            email=body.email,
            secret=body.password,
            display_name=body.display_name,
            organization=body.organization,
            title=body.title,
            graduation_year=body.graduation_year,
            phone=body.phone,
        )
    except DuplicateAccountError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "An account with that email already exists."},
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "validation_error", "message": str(exc)},
        ) from exc

    response.headers["Cache-Control"] = "no-store"  # [M5]
    return AccountResponse.from_domain(profile)


@limiter.limit(login_limit)  # [H2] brute-force mitigation
@router.post("/auth/login", response_model=LoginResponse)
def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Returns the same generic error for an unknown email and a wrong password
    ("bad_credentials") so responses do not reveal which emails are registered.
    """
    try:
        result = service.login(body.email, body.password)
    except InvalidCredentialsError:
        resp = JSONResponse(status_code=401, content={"error": _BAD_CREDENTIALS})
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=result.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=result.expires_in,
            account=PublicAccountResponse.from_domain(result.account),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/session", response_model=SessionResponse)
async def current_session(session: SessionClaim = Depends(require_session)) -> SessionResponse:
    """Return the identity and validity window carried by the presented token."""
    return SessionResponse.from_claim(session)


@router.post("/auth/password", status_code=204)
def change_password(
    body: PasswordChange,
    session: SessionClaim = Depends(require_session),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    """Change the caller's password after re-checking the current one.

    Tokens issued before the change stay valid until they expire.
    """
    try:
        service.change_secret(session.subject, body.current_password, body.new_password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=_BAD_CREDENTIALS) from exc
    return Response(status_code=204)
