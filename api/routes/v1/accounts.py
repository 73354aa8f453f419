"""
api/routes/v1/accounts.py -- Alumni profile endpoints.

Routes:
  GET   /api/v1/accounts        -- alumni directory
  GET   /api/v1/accounts/me     -- caller's own profile
  PATCH /api/v1/accounts/me     -- edit caller's profile fields
  GET   /api/v1/accounts/{id}   -- one alumnus' profile

Every route requires a session. The account a request acts on is always
session.subject -- never an id or email taken from the request body.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.models import AccountResponse, ProfileUpdate
from auth.dependencies import get_auth_service, require_session
from auth.errors import AccountNotFoundError
from auth.models import SessionClaim
from auth.service import AuthService

# Auth policy:
# - all routes: requires auth -- the alumni directory is members-only
# Router-level dependency enforces auth; handlers that need the identity
# declare require_session again to receive the claim (FastAPI caches it per request).
router = APIRouter(dependencies=[Depends(require_session)])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "Account not found."},
    )


@router.get("/accounts", response_model=list[AccountResponse])
def list_accounts(service: AuthService = Depends(get_auth_service)) -> list[AccountResponse]:
    """List alumni, most recent graduating cohort first."""
    return [AccountResponse.from_domain(p) for p in service.list_profiles()]


@router.get("/accounts/me", response_model=AccountResponse)
def get_my_account(
    session: SessionClaim = Depends(require_session),
    service: AuthService = Depends(get_auth_service),
) -> AccountResponse:
    """Return the caller's own profile.

    The token outlives nothing on the server, so an account that no longer
    exists yields 404 rather than 401.
    """
    try:
        return AccountResponse.from_domain(service.get_profile(session.subject))
    except AccountNotFoundError as exc:
        raise _not_found() from exc


@router.patch("/accounts/me", response_model=AccountResponse)
def update_my_account(
    body: ProfileUpdate,
    session: SessionClaim = Depends(require_session),
    service: AuthService = Depends(get_auth_service),
) -> AccountResponse:
    """Update display name and profile fields on the caller's account."""
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(
            status_code=400,
            detail={"code": "no_changes", "message": "No fields to update."},
        )
    try:
        return AccountResponse.from_domain(service.update_profile(session.subject, **updates))
    except AccountNotFoundError as exc:
        raise _not_found() from exc


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: int, service: AuthService = Depends(get_auth_service)) -> AccountResponse:
    try:
        return AccountResponse.from_domain(service.get_profile(account_id))
    except AccountNotFoundError as exc:
        raise _not_found() from exc
