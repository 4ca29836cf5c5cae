"""
messages/directory.py -- Directional message queries and message lifecycle.

MessageDirectory answers "what did u send" (messages_from) and "what did u
receive" (messages_to), each row joined with the other party's profile, and
handles the three message operations: send, get, mark_read.

Behaviour choices:
  - messages_from / messages_to raise NotFoundError for an unknown username
    and return [] for a known user with no messages. The existence check runs
    first so the two cases cannot be confused.
  - Results are ordered by ascending message id.
  - Self-messaging (from == to) is allowed.
  - read_at is set at most once; marking an already-read message keeps the
    original timestamp.

This class performs no authorization. Callers run AuthorizationGuard first.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from auth.exceptions import NotFoundError
from auth.store import CredentialStore
from messages.models import (
    MessageDetail,
    ReceivedMessage,
    SentMessage,
    message_detail_from_row,
    received_message_from_row,
    sent_message_from_row,
)

logger = logging.getLogger("courier.messages")


class MessageDirectory:
    def __init__(self, store: CredentialStore, clock: Callable[[], datetime] | None = None) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _require_user(self, username: str) -> None:
        if self._store.find_user_by_username(username) is None:
            raise NotFoundError(f"No such user: {username}")

    def messages_from(self, username: str) -> list[SentMessage]:
        """Messages sent by username, each with the recipient's profile."""
        self._require_user(username)
        return [sent_message_from_row(r) for r in self._store.find_messages_by_sender(username)]

    def messages_to(self, username: str) -> list[ReceivedMessage]:
        """Messages received by username, each with the sender's profile."""
        self._require_user(username)
        return [received_message_from_row(r) for r in self._store.find_messages_by_recipient(username)]

    def send(self, from_username: str, to_username: str, body: str) -> MessageDetail:
        """Store a new message and return it with both profiles.

        Raises:
            NotFoundError: either username does not exist.
        """
        try:
            message_id = self._store.insert_message(from_username, to_username, body, self._clock().isoformat())
        except IntegrityError as exc:
            for username in (from_username, to_username):
                if self._store.find_user_by_username(username) is None:
                    raise NotFoundError(f"No such user: {username}") from exc
            raise
        logger.info("Message %d sent: %s -> %s", message_id, from_username, to_username)
        return self.get(message_id)

    def get(self, message_id: int) -> MessageDetail:
        """Raises NotFoundError if message_id is unknown."""
        row = self._store.find_message_by_id(message_id)
        if row is None:
            raise NotFoundError(f"No such message: {message_id}")
        return message_detail_from_row(row)

    def mark_read(self, message_id: int) -> MessageDetail:
        """Set read_at on first call; later calls return the message unchanged.

        Raises:
            NotFoundError: message_id is unknown.
        """
        message = self.get(message_id)
        if message.read_at is not None:
            return message
        # read_at never precedes sent_at, even if the clock stepped backwards
        at = max(self._clock().isoformat(), message.sent_at)
        if self._store.mark_message_read(message_id, at):
            logger.info("Message %d marked read", message_id)
        return self.get(message_id)
