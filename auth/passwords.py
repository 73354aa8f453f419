"""
auth/passwords.py -- Credential hashing and verification (bcrypt).

Security design decisions:
  bcrypt directly, no passlib wrapper. passlib's wrap-bug detection feeds
  bcrypt a >72-byte password, which bcrypt 4.x rejects outright.

  SHA-256 pre-hash: the secret is digested and base64-encoded (44 ASCII
  bytes) before bcrypt sees it. bcrypt silently truncates (older releases) or
  refuses (5.x) anything past 72 bytes; the pre-hash makes every secret
  length behave the same.

  Work factor: fixed per process from Settings.bcrypt_rounds. Each hash()
  call draws a fresh salt via bcrypt.gensalt(), so hashing the same secret
  twice never yields the same string.

  Constant time: bcrypt.checkpw re-derives the digest and compares it in
  constant time. We never compare hash strings ourselves.

  Corruption is not a mismatch: a stored value that is not a bcrypt hash
  raises CorruptCredentialError. Returning False would make a damaged row
  look like a user typing the wrong password.

  Timing equalization [C1]: equalize() verifies against a dummy hash built at
  construction so an unknown email costs as much as a wrong password.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import base64
import hashlib
import re

import bcrypt

from auth.errors import CorruptCredentialError

# $2a$/$2b$/$2y$, two-digit cost, 22-char salt + 31-char digest in bcrypt's base64 alphabet.
_BCRYPT_RE = re.compile(r"^\$2[aby]\$(0[4-9]|[12][0-9]|3[01])\$[./A-Za-z0-9]{53}$")


def _prehash(secret: str) -> bytes:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.b64encode(digest)


class CredentialHasher:
    """Salted, adaptive one-way hashing of user secrets.

    Usage:
        hasher = CredentialHasher(rounds=12)
        stored = hasher.hash("pw123")
        hasher.verify("pw123", stored)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash = self.hash("alumnet_timing_dummy")

    def hash(self, secret: str) -> str:
        """Return a bcrypt hash of secret using a freshly generated salt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_prehash(secret), salt).decode("ascii")

    def verify(self, secret: str, stored: str) -> bool:
        """Return True if secret matches stored.

        Raises CorruptCredentialError if stored is not a well-formed bcrypt hash.
        """
        if not isinstance(stored, str) or not _BCRYPT_RE.match(stored):
            raise CorruptCredentialError("Stored credential is not a valid bcrypt hash")
        try:
            return bcrypt.checkpw(_prehash(secret), stored.encode("ascii"))
        except ValueError as exc:
            raise CorruptCredentialError("Stored credential could not be parsed") from exc

    def equalize(self, secret: str) -> None:
        """Spend one verification's worth of work and discard the result."""
        bcrypt.checkpw(_prehash(secret), self._dummy_hash.encode("ascii"))
