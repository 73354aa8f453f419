"""Unit tests for auth/tokens.py -- TokenIssuer.

Covers:
- issue/verify round trip recovers subject and email, with iat <= now <= exp
- strict expiry (a token is dead AT its expiry instant, not one second after)
- tampering, wrong key, wrong algorithm, garbage input -> InvalidSignatureError
- signature is checked before expiry
- correctly signed tokens with malformed claims -> InvalidSignatureError
"""

import time

import pytest
from jose import jwt

from auth.errors import InvalidSignatureError, TokenExpiredError, TokenVerificationError
from auth.tokens import TokenIssuer

KEY = "s" * 48


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_round_trip_recovers_identity(issuer: TokenIssuer) -> None:
    before = int(time.time())
    claim = issuer.verify(issuer.issue(subject=42, email="a@x.com"))
    now = time.time()
    assert claim.subject == 42
    assert claim.email == "a@x.com"
    assert before <= claim.issued_at <= now < claim.expires_at
    assert claim.expires_at - claim.issued_at == 3600


def test_token_is_opaque_string(issuer: TokenIssuer) -> None:
    token = issuer.issue(subject=1, email="a@x.com")
    assert isinstance(token, str)
    assert token.count(".") == 2


def test_expiry_is_strict() -> None:
    clock = FakeClock(1_700_000_000)
    issuer = TokenIssuer(KEY, lifetime_seconds=60, clock=clock)
    token = issuer.issue(subject=7, email="b@x.com")

    clock.now = 1_700_000_059.999
    assert issuer.verify(token).subject == 7

    clock.now = 1_700_000_060
    with pytest.raises(TokenExpiredError):
        issuer.verify(token)

    clock.now = 1_800_000_000
    with pytest.raises(TokenExpiredError):
        issuer.verify(token)


def test_expired_and_invalid_share_a_base_class() -> None:
    assert issubclass(TokenExpiredError, TokenVerificationError)
    assert issubclass(InvalidSignatureError, TokenVerificationError)
    assert TokenExpiredError.reason != InvalidSignatureError.reason


def test_tampered_signature_is_rejected(issuer: TokenIssuer) -> None:
    header, payload, signature = issuer.issue(subject=1, email="a@x.com").split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
    with pytest.raises(InvalidSignatureError):
        issuer.verify(f"{header}.{payload}.{flipped}")


def test_tampered_payload_is_rejected(issuer: TokenIssuer) -> None:
    token = issuer.issue(subject=1, email="a@x.com")
    forged_payload = jwt.encode({"sub": "2", "email": "evil@x.com", "iat": 0, "exp": 2**31}, "other-key" * 4)
    header, _, signature = token.split(".")
    _, payload, _ = forged_payload.split(".")
    with pytest.raises(InvalidSignatureError):
        issuer.verify(f"{header}.{payload}.{signature}")


def test_wrong_key_is_rejected(issuer: TokenIssuer) -> None:
    other = TokenIssuer("o" * 40)
    with pytest.raises(InvalidSignatureError):
        issuer.verify(other.issue(subject=1, email="a@x.com"))


def test_disallowed_algorithm_is_rejected(issuer: TokenIssuer) -> None:
    token = jwt.encode(
        {"sub": "1", "email": "a@x.com", "iat": int(time.time()), "exp": int(time.time()) + 60},
        "k" * 32 + "-unit-test-signing-key",
        algorithm="HS512",
    )
    with pytest.raises(InvalidSignatureError):
        issuer.verify(token)


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "Bearer xyz"])
def test_garbage_is_rejected(issuer: TokenIssuer, garbage: str) -> None:
    with pytest.raises(InvalidSignatureError):
        issuer.verify(garbage)


def test_signature_checked_before_expiry() -> None:
    """An expired token from a different key reports the signature failure."""
    clock = FakeClock(1_700_000_000)
    foreign = TokenIssuer("f" * 40, lifetime_seconds=1, clock=clock)
    ours = TokenIssuer(KEY, lifetime_seconds=1, clock=clock)
    token = foreign.issue(subject=1, email="a@x.com")
    clock.now += 10
    with pytest.raises(InvalidSignatureError):
        ours.verify(token)


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "a@x.com", "iat": 1, "exp": 2**31},  # no sub
        {"sub": "1", "iat": 1, "exp": 2**31},  # no email
        {"sub": "1", "email": "a@x.com", "iat": 1},  # no exp
        {"sub": "abc", "email": "a@x.com", "iat": 1, "exp": 2**31},  # non-numeric subject
        {"sub": "1", "email": 5, "iat": 1, "exp": 2**31},  # non-string email
        {"sub": "1", "email": "a@x.com", "iat": 1, "exp": "later"},  # non-integer exp
    ],
)
def test_signed_but_malformed_claims_are_rejected(payload: dict) -> None:
    issuer = TokenIssuer(KEY)
    token = jwt.encode(payload, KEY, algorithm="HS256")
    with pytest.raises(InvalidSignatureError):
        issuer.verify(token)
