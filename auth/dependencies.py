"""
auth/dependencies.py -- FastAPI Depends() helpers for sessions and services.

Only one authentication method exists: Authorization: Bearer <token>. There
is no cookie fallback and no API key path -- the token is the session.

try_get_session() is the soft variant (returns None on failure).
require_session() wraps it and raises HTTP 401 if unauthenticated.

Every rejection (missing header, wrong scheme, tampered or expired token)
produces the same 401 body. The internal reason is logged by the guard,
never returned.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.guard import SessionGuard
from auth.models import SessionClaim
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService wired into app.state by the lifespan."""
    return request.app.state.auth_service


def try_get_session(request: Request) -> SessionClaim | None:
    """Run the session guard on this request.

    Returns the verified SessionClaim on success, None on any failure.
    On success the claim is also attached to request.state.session so
    downstream code (middleware, handlers) can read the resolved identity.
    """
    guard: SessionGuard = request.app.state.session_guard
    outcome = guard.check(request.headers.get("Authorization"))
    if not outcome.verified:
        return None
    request.state.session = outcome.claim
    return outcome.claim


def require_session(request: Request) -> SessionClaim:
    """Require a valid session. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(session: SessionClaim = Depends(require_session)): ...

    Handlers must take identity from the returned claim, never from fields
    in the request body.
    """
    claim = try_get_session(request)
    if claim is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthenticated", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claim
