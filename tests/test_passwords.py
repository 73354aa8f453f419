"""Unit tests for auth/passwords.py -- CredentialHasher.

Covers:
- hash/verify round trip and rejection of a different secret
- fresh salt per hash (same secret, different output, both verify)
- secrets past bcrypt's 72-byte limit are not truncated
- malformed stored hashes raise CorruptCredentialError instead of returning False
"""

import pytest

from auth.errors import CorruptCredentialError
from auth.passwords import CredentialHasher


@pytest.mark.parametrize("secret", ["pw123", "", " spaced secret ", "päss-wörd-ü", "x" * 500])
def test_verify_accepts_original_secret(hasher: CredentialHasher, secret: str) -> None:
    assert hasher.verify(secret, hasher.hash(secret)) is True


def test_verify_rejects_different_secret(hasher: CredentialHasher) -> None:
    stored = hasher.hash("pw123")
    assert hasher.verify("pw1234", stored) is False
    assert hasher.verify("PW123", stored) is False
    assert hasher.verify("", stored) is False


def test_hash_is_salted_per_call(hasher: CredentialHasher) -> None:
    """Two hashes of the same secret differ, yet both verify."""
    first = hasher.hash("pw123")
    second = hasher.hash("pw123")
    assert first != second
    assert hasher.verify("pw123", first)
    assert hasher.verify("pw123", second)


def test_hash_never_contains_plaintext(hasher: CredentialHasher) -> None:
    assert "correct-horse" not in hasher.hash("correct-horse")


def test_long_secrets_are_not_truncated(hasher: CredentialHasher) -> None:
    """Secrets sharing the first 72 bytes must still be told apart."""
    prefix = "a" * 72
    stored = hasher.hash(prefix + "one")
    assert hasher.verify(prefix + "one", stored)
    assert not hasher.verify(prefix + "two", stored)


def test_work_factor_is_encoded_in_hash() -> None:
    stored = CredentialHasher(rounds=5).hash("pw123")
    assert stored.startswith("$2b$05$")


@pytest.mark.parametrize(
    "stored",
    [
        "",
        "not-a-hash",
        "pw123",
        "$2b$04$tooshort",
        "$2x$04$" + "a" * 53,  # unsupported version tag
        "$2b$99$" + "a" * 53,  # cost out of range
        "$2b$04$" + "!" * 53,  # outside bcrypt's alphabet
    ],
)
def test_malformed_stored_hash_is_corruption_not_mismatch(hasher: CredentialHasher, stored: str) -> None:
    with pytest.raises(CorruptCredentialError):
        hasher.verify("pw123", stored)


def test_truncated_real_hash_is_corruption(hasher: CredentialHasher) -> None:
    stored = hasher.hash("pw123")
    with pytest.raises(CorruptCredentialError):
        hasher.verify("pw123", stored[:-1])


def test_equalize_returns_nothing_and_never_raises(hasher: CredentialHasher) -> None:
    assert hasher.equalize("anything") is None
