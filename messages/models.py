"""
messages/models.py -- Domain dataclasses and row mappers for direct messages.

Pattern: Data class + Data Mapper. The dataclasses are pure containers;
the *_from_row functions are the single place where a joined store row
becomes a typed record. They take any Mapping, so tests exercise them with
plain dicts and no database.

Row column conventions (see auth/store.py):
  id, body, sent_at, read_at                              -- the message
  from_username, from_first_name, from_last_name, from_phone -- sender profile
  to_username, to_first_name, to_last_name, to_phone         -- recipient profile

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CounterpartProfile:
    """Non-secret profile of the other party in a directed message."""

    username: str
    first_name: str
    last_name: str
    phone: str


@dataclass(frozen=True)
class SentMessage:
    """A message as seen in its sender's outbox."""

    id: int
    body: str
    sent_at: str
    read_at: str | None
    to_user: CounterpartProfile


@dataclass(frozen=True)
class ReceivedMessage:
    """A message as seen in its recipient's inbox."""

    id: int
    body: str
    sent_at: str
    read_at: str | None
    from_user: CounterpartProfile


@dataclass(frozen=True)
class MessageDetail:
    """A single message with both parties' profiles.

    Also the input to the ownership checks in auth/guard.py, which only read
    from_user.username and to_user.username.
    """

    id: int
    body: str
    sent_at: str
    read_at: str | None
    from_user: CounterpartProfile
    to_user: CounterpartProfile


def _profile(row: Mapping[str, Any], prefix: str) -> CounterpartProfile:
    return CounterpartProfile(
        username=row[f"{prefix}_username"],
        first_name=row[f"{prefix}_first_name"],
        last_name=row[f"{prefix}_last_name"],
        phone=row[f"{prefix}_phone"],
    )


def sent_message_from_row(row: Mapping[str, Any]) -> SentMessage:
    return SentMessage(
        id=row["id"],
        body=row["body"],
        sent_at=row["sent_at"],
        read_at=row["read_at"],
        to_user=_profile(row, "to"),
    )


def received_message_from_row(row: Mapping[str, Any]) -> ReceivedMessage:
    return ReceivedMessage(
        id=row["id"],
        body=row["body"],
        sent_at=row["sent_at"],
        read_at=row["read_at"],
        from_user=_profile(row, "from"),
    )


def message_detail_from_row(row: Mapping[str, Any]) -> MessageDetail:
    return MessageDetail(
        id=row["id"],
        body=row["body"],
        sent_at=row["sent_at"],
        read_at=row["read_at"],
        from_user=_profile(row, "from"),
        to_user=_profile(row, "to"),
    )
