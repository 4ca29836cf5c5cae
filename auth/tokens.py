"""
auth/tokens.py -- Signed bearer tokens (JWT via python-jose).

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the principal (sub) plus
       iat, and exp when an expiry is configured. The password is never a
       claim -- a token is a bearer credential that travels in headers and
       logs, and anything in its payload is readable by whoever holds it.

  SECRET_KEY: injected through the TokenService constructor. The lifespan in
       api/main.py builds one TokenService from Settings at startup and keeps
       it on app.state; the key is never rotated within a run. Tests build
       their own instances with their own keys, so no module-level state is
       shared between them.

  Failure mode: verify() raises AuthenticationError for every kind of bad
       token (absent, malformed, wrong key, expired, missing sub). Callers do
       not get to distinguish -- the response is the same 401 in all cases.

Layer rule: no imports from api/, core/, or messages/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.exceptions import AuthenticationError

logger = logging.getLogger("courier.auth")

_ALGORITHM = "HS256"


class TokenService:
    """Issue and verify signed tokens binding a username.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key)
        token = tokens.issue("alice")
        tokens.verify(token)  # "alice"
    """

    def __init__(self, secret_key: str, expire_seconds: int = 0, algorithm: str = _ALGORITHM) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret_key")
        self._secret_key = secret_key
        self._expire_seconds = expire_seconds
        self._algorithm = algorithm

    def issue(self, principal: str) -> str:
        """Encode a signed JWT whose subject is principal."""
        now = datetime.now(timezone.utc)
        payload: dict = {"sub": principal, "iat": now}
        if self._expire_seconds > 0:
            payload["exp"] = now + timedelta(seconds=self._expire_seconds)
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str | None) -> str:
        """Return the principal a token was issued for.

        Raises:
            AuthenticationError: token absent, malformed, wrongly signed,
                expired, or without a string subject.
        """
        if not token:
            raise AuthenticationError("Authentication required.")
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.info("Rejected token: %s", exc.__class__.__name__)
            raise AuthenticationError("Invalid or expired token.") from exc
        principal = payload.get("sub")
        if not isinstance(principal, str) or not principal:
            raise AuthenticationError("Invalid or expired token.")
        return principal
