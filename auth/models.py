"""
auth/models.py -- Domain dataclasses for identity entities.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work. Mirrors messages/models.py.

Only User carries the password digest. Everything that crosses the service
boundary is one of the public projections (UserSummary, UserProfile), which
have no field for it -- a profile cannot leak the hash by accident.

Layer rule: no imports from api/, core/, or messages/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A stored identity record.

    hashed_password is a bcrypt digest; the cost factor is encoded inside it
    ("$2b$12$..."), so no separate column is needed to verify old hashes after
    the configured work factor changes.

    join_at / last_login_at are ISO 8601 UTC strings.
    """

    username: str
    hashed_password: str
    first_name: str
    last_name: str
    phone: str
    join_at: str = ""
    last_login_at: str | None = None

    def to_profile(self) -> UserProfile:
        return UserProfile(
            username=self.username,
            first_name=self.first_name,
            last_name=self.last_name,
            phone=self.phone,
            join_at=self.join_at,
            last_login_at=self.last_login_at,
        )


@dataclass(frozen=True)
class UserSummary:
    """One row of the user directory listing."""

    username: str
    first_name: str
    last_name: str


@dataclass(frozen=True)
class UserProfile:
    """Non-secret user detail: returned by registration and the detail view."""

    username: str
    first_name: str
    last_name: str
    phone: str
    join_at: str
    last_login_at: str | None = None
