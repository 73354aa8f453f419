"""
auth/tokens.py -- Signed session token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with Settings.secret_key and
       carry the account id (sub), email, issued-at and expiry. The server
       keeps no session table -- a token is valid exactly when its signature
       checks out and its expiry has not been reached.

  Verification order: signature/structure first, expiry second. jose's own
       exp check is disabled because it accepts now == exp and applies it
       before we can classify the failure; we compare against our own clock
       with a strict now >= exp.

  Failure kinds: InvalidSignatureError and TokenExpiredError are distinct so
       logs can tell tampering from a stale session. Callers outside auth/
       must treat both as "unauthenticated".

Layer rule: no imports from api/.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from jose import JWTError, jwt

from auth.errors import InvalidSignatureError, TokenExpiredError
from auth.models import SessionClaim

_ALGORITHM = "HS256"


class TokenIssuer:
    """Issue and verify HS256 session tokens.

    Usage:
        issuer = TokenIssuer(secret_key, lifetime_seconds=3600)
        token = issuer.issue(subject=42, email="a@x.com")
        claim = issuer.verify(token)   # SessionClaim(subject=42, ...)
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret_key = secret_key
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    def issue(self, subject: int, email: str) -> str:
        """Encode a signed token for the given account id and email."""
        issued_at = int(self._clock())
        payload = {
            "sub": str(subject),
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.lifetime_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> SessionClaim:
        """Decode and verify a token. Returns the claim it carries.

        Raises InvalidSignatureError on any decode, signature, or claim-shape
        failure, and TokenExpiredError once the expiry instant is reached.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidSignatureError(str(exc)) from exc

        claim = _payload_to_claim(payload)
        if self._clock() >= claim.expires_at:
            raise TokenExpiredError(f"Token expired at {claim.expires_at}")
        return claim


def _payload_to_claim(payload: dict) -> SessionClaim:
    # A correctly signed token with the wrong shape was not issued by us.
    try:
        subject = int(payload["sub"])
        email = payload["email"]
        issued_at = payload["iat"]
        expires_at = payload["exp"]
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidSignatureError("Token claims are malformed") from exc
    if not isinstance(email, str) or not all(isinstance(v, int) for v in (issued_at, expires_at)):
        raise InvalidSignatureError("Token claims are malformed")
    return SessionClaim(subject=subject, email=email, issued_at=issued_at, expires_at=expires_at)
