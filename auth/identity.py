"""
auth/identity.py -- Registration, authentication and profile lookup.

IdentityManager orchestrates CredentialStore + PasswordHasher. It is the
only code that sees a plaintext password after the request body is parsed,
and the only code that reads User.hashed_password. Everything it returns is
a public projection (UserProfile / UserSummary).

Security notes:
  Duplicate usernames are detected from the store's primary-key violation,
  not from a SELECT-then-INSERT pre-check, so two concurrent registrations
  cannot both succeed.

  authenticate() always runs one bcrypt verification, against the dummy
  digest when the username is absent, so response time does not reveal
  whether a username exists.

  login() stamps last_login_at synchronously before returning. A caller
  never hands out a token for a login whose timestamp update has not
  completed.

Layer rule: no imports from api/, core/, or messages/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from auth.exceptions import AuthenticationError, ConflictError, NotFoundError
from auth.models import User, UserProfile, UserSummary
from auth.passwords import PasswordHasher
from auth.store import CredentialStore

logger = logging.getLogger("courier.auth.identity")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdentityManager:
    """User lifecycle operations over an injected store and hasher."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._clock = clock or _utcnow

    def _now_iso(self) -> str:
        return self._clock().isoformat()

    def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str,
    ) -> UserProfile:
        """Create a user and return its public profile.

        join_at and last_login_at are both set to the creation time --
        registering counts as the first login.

        Raises:
            ConflictError: username already taken. The existing record is unchanged.
        """
        now = self._now_iso()
        user = User(
            username=username,
            hashed_password=self._hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            join_at=now,
            last_login_at=now,
        )
        try:
            self._store.insert_user(user)
        except IntegrityError as exc:
            logger.info("Registration rejected, username taken: %s", username)
            raise ConflictError(f"Username already exists: {username}") from exc
        logger.info("User registered: %s", username)
        return user.to_profile()

    def authenticate(self, username: str, password: str) -> bool:
        """Return True if password is correct for username.

        An unknown username is False, not an error.
        """
        user = self._store.find_user_by_username(username)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt
            self._hasher.verify_dummy(password)
            return False
        return self._hasher.verify(password, user.hashed_password)

    def touch_login(self, username: str) -> str:
        """Stamp last_login_at with the current time and return it.

        Raises:
            NotFoundError: username is unknown. No record is created.
        """
        now = self._now_iso()
        if not self._store.update_last_login(username, now):
            raise NotFoundError(f"No such user: {username}")
        return now

    def login(self, username: str, password: str) -> UserProfile:
        """Authenticate, stamp last_login_at, and return the refreshed profile.

        Raises:
            AuthenticationError: wrong password or unknown username (same message for both).
        """
        if not self.authenticate(username, password):
            logger.info("Login failed for username: %s", username)
            raise AuthenticationError("Invalid username or password.")
        self.touch_login(username)
        logger.info("Login succeeded: %s", username)
        return self.get_profile(username)

    def get_profile(self, username: str) -> UserProfile:
        """Raises NotFoundError if username is unknown."""
        user = self._store.find_user_by_username(username)
        if user is None:
            raise NotFoundError(f"No such user: {username}")
        return user.to_profile()

    def exists(self, username: str) -> bool:
        return self._store.find_user_by_username(username) is not None

    def list_all(self) -> list[UserSummary]:
        """Every user's name fields, ordered by username. No secrets are included."""
        return self._store.list_users_ordered()
