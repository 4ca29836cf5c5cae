"""
auth/guard.py -- Per-request authorization decisions.

Each request moves through one short state machine:

  Unauthenticated --(valid token, principal exists)--> Authenticated(principal)
  Authenticated   --(ownership check)--> Authorized | Forbidden

Ownership rules:
  - user detail, inbox (to), outbox (from): only the user themself
  - user directory listing: any authenticated principal
  - message detail: sender or recipient
  - mark message read: recipient only
  - send message: any authenticated principal

Routes must call these before returning or mutating the target resource.

Layer rule: no runtime imports from api/, core/, or messages/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from auth.exceptions import AuthenticationError, ForbiddenError
from auth.identity import IdentityManager
from auth.tokens import TokenService

if TYPE_CHECKING:
    from messages.models import MessageDetail

logger = logging.getLogger("courier.auth")


class AuthorizationGuard:
    """Allow/deny decisions built on TokenService and IdentityManager."""

    def __init__(self, tokens: TokenService, identity: IdentityManager) -> None:
        self._tokens = tokens
        self._identity = identity

    def require_authenticated(self, token: str | None) -> str:
        """Return the principal named by a valid token.

        A correctly signed token for a username no longer in the store is
        rejected too.

        Raises:
            AuthenticationError: token missing or invalid, or principal unknown.
        """
        principal = self._tokens.verify(token)
        if not self._identity.exists(principal):
            logger.warning("Token for unknown principal rejected: %s", principal)
            raise AuthenticationError("Invalid or expired token.")
        return principal

    def require_self(self, principal: str, target_username: str) -> None:
        """Raises ForbiddenError unless principal is target_username."""
        if principal != target_username:
            logger.warning("Forbidden: %s requested resources of %s", principal, target_username)
            raise ForbiddenError("You may only access your own account.")

    def require_party(self, principal: str, message: MessageDetail) -> None:
        """Raises ForbiddenError unless principal sent or received message."""
        if principal not in (message.from_user.username, message.to_user.username):
            logger.warning("Forbidden: %s requested message %s", principal, message.id)
            raise ForbiddenError("You may only access messages you sent or received.")

    def require_recipient(self, principal: str, message: MessageDetail) -> None:
        """Raises ForbiddenError unless principal received message."""
        if principal != message.to_user.username:
            logger.warning("Forbidden: %s tried to mark message %s read", principal, message.id)
            raise ForbiddenError("Only the recipient may mark a message as read.")
