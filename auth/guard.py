"""
auth/guard.py -- Session Guard: resolve a request's bearer token to an identity.

Per-request state machine:

    UNAUTHENTICATED --(Authorization: Bearer <t>)--> TOKEN_EXTRACTED
    TOKEN_EXTRACTED --(TokenIssuer.verify ok)------> VERIFIED
    any state       --(missing/bad header, bad token)--> REJECTED

check() always returns a GuardOutcome. Verification exceptions are caught
here and turned into a REJECTED outcome with a reason; they never reach
route handlers. The reason is for logs only -- every rejection looks the
same to the client (see auth/dependencies.py).

The guard holds no cross-request state. One instance is shared by the app.

Layer rule: no imports from api/ or fastapi.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from auth.errors import TokenVerificationError
from auth.models import SessionClaim
from auth.tokens import TokenIssuer

logger = logging.getLogger("alumnet.auth")

_BEARER = "bearer"


class GuardState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_EXTRACTED = "token_extracted"
    VERIFIED = "verified"
    REJECTED = "rejected"


class RejectReason(str, enum.Enum):
    MISSING_TOKEN = "missing_token"
    MALFORMED_HEADER = "malformed_header"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


@dataclass(frozen=True)
class GuardOutcome:
    state: GuardState
    claim: SessionClaim | None = None
    reason: RejectReason | None = None

    @property
    def verified(self) -> bool:
        return self.state is GuardState.VERIFIED


def extract_bearer(authorization: str | None) -> tuple[str | None, RejectReason | None]:
    """Split an Authorization header into its bearer token.

    Returns (token, None) on success or (None, reason) when there is nothing
    usable. The scheme is matched case-insensitively per RFC 7235.
    """
    if not authorization or not authorization.strip():
        return None, RejectReason.MISSING_TOKEN
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != _BEARER:
        return None, RejectReason.MALFORMED_HEADER
    token = token.strip()
    if not token:
        return None, RejectReason.MISSING_TOKEN
    if " " in token:
        return None, RejectReason.MALFORMED_HEADER
    return token, None


class SessionGuard:
    def __init__(self, issuer: TokenIssuer) -> None:
        self._issuer = issuer

    def check(self, authorization: str | None) -> GuardOutcome:
        """Run the state machine over one Authorization header value."""
        token, reason = extract_bearer(authorization)
        if token is None:
            return _reject(reason)

        # TOKEN_EXTRACTED
        try:
            claim = self._issuer.verify(token)
        except TokenVerificationError as exc:
            return _reject(RejectReason(exc.reason))
        return GuardOutcome(state=GuardState.VERIFIED, claim=claim)


def _reject(reason: RejectReason) -> GuardOutcome:
    logger.debug("Session rejected: %s", reason.value)
    return GuardOutcome(state=GuardState.REJECTED, reason=reason)
