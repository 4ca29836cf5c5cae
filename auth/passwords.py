"""
auth/passwords.py -- One-way adaptive password hashing (bcrypt).

Security design decisions:
  bcrypt directly, no passlib wrapper. The cost factor (work_factor, bcrypt
  log-rounds) is configurable and encoded inside every digest, so digests
  produced under an older factor keep verifying after the setting changes.

  Pre-hash: the plaintext is SHA-256'd and base64-encoded before bcrypt sees
  it. bcrypt only reads the first 72 bytes and newer releases reject longer
  input or NUL bytes outright; the 44-byte base64 form sidesteps both, so
  hash() accepts any str and never raises on user input.

  Timing equalization: verify_dummy() runs a full bcrypt check against a
  digest computed at construction, so a login for an unknown username costs
  the same as a wrong password for a known one.

Layer rule: no imports from api/, core/, or messages/.
"""

from __future__ import annotations

import base64
import hashlib

import bcrypt

_MIN_WORK_FACTOR = 4
_MAX_WORK_FACTOR = 31


def _prepare(plain: str) -> bytes:
    # surrogatepass: lone surrogates are valid in a Python str but not in UTF-8
    digest = hashlib.sha256(plain.encode("utf-8", "surrogatepass")).digest()
    return base64.b64encode(digest)


class PasswordHasher:
    """Salted bcrypt hashing with a fixed per-instance cost.

    Usage:
        hasher = PasswordHasher(work_factor=12)
        digest = hasher.hash("secret")
        hasher.verify("secret", digest)  # True
    """

    def __init__(self, work_factor: int = 12) -> None:
        if not _MIN_WORK_FACTOR <= work_factor <= _MAX_WORK_FACTOR:
            raise ValueError(
                f"work_factor must be between {_MIN_WORK_FACTOR} and {_MAX_WORK_FACTOR}, got {work_factor}"
            )
        self.work_factor = work_factor
        self._dummy_digest = self.hash("courier_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of plain with a fresh random salt."""
        salt = bcrypt.gensalt(rounds=self.work_factor)
        return bcrypt.hashpw(_prepare(plain), salt).decode("ascii")

    def verify(self, plain: str, digest: str) -> bool:
        """Return True if plain matches digest.

        A malformed, empty, or foreign digest is a verification failure, not
        an error -- a corrupted row must lock the account, not crash login.
        """
        try:
            return bcrypt.checkpw(_prepare(plain), digest.encode("utf-8"))
        except Exception:
            return False

    def verify_dummy(self, plain: str) -> None:
        """Spend one verification's worth of CPU without a real digest."""
        self.verify(plain, self._dummy_digest)
