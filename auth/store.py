"""
auth/store.py -- SQLAlchemy Core persistence layer for users and messages.

Pattern: Repository + Data Mapper.
CredentialStore is the repository; row_to_user is the user mapper. Message
finders return joined row mappings and messages/models.py owns their
mappers, so the projection shape lives next to the dataclasses it builds.
Service and route code never touches SQL directly.

Every service receives its CredentialStore through its constructor. Tests
pass a store built on sqlite:///:memory: instead of the file database.

Security:
  All queries use bound parameters. No f-strings in SQL.

  username is the users primary key. Duplicate registrations -- including
  two concurrent ones -- are resolved here: one INSERT wins, the other raises
  sqlalchemy.exc.IntegrityError, which IdentityManager turns into
  ConflictError. There is no application-level lock.

  messages.from_username / to_username are foreign keys into users. SQLite
  only enforces them with PRAGMA foreign_keys=ON, set per connection below.

Layer rule: no imports from api/, core/, or messages/.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine, RowMapping

from auth.models import User, UserSummary

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("username", String(255), primary_key=True),
    Column("hashed_password", Text, nullable=False),
    Column("first_name", String(255), nullable=False),
    Column("last_name", String(255), nullable=False),
    Column("phone", String(64), nullable=False),
    Column("join_at", String(32), nullable=False),
    Column("last_login_at", String(32)),  # NULL until the first login stamp
)

_messages = Table(
    "messages",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("from_username", String(255), ForeignKey("users.username"), nullable=False),
    Column("to_username", String(255), ForeignKey("users.username"), nullable=False),
    Column("body", Text, nullable=False),
    Column("sent_at", String(32), nullable=False),
    Column("read_at", String(32)),  # set once by mark_message_read()
)

# Aliases for the counterpart joins: f = sender profile, t = recipient profile.
_from_user = _users.alias("f")
_to_user = _users.alias("t")


# ---------------------------------------------------------------------------
# SQLite connection pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for User and Message rows.

    Usage:
        store = CredentialStore("sqlite:///:memory:")
        store.insert_user(User(username="alice", hashed_password=digest, ...))
        user = store.find_user_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def insert_user(self, user: User) -> None:
        """Insert a new user row.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        The existing row is left untouched.
        """
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    phone=user.phone,
                    join_at=user.join_at,
                    last_login_at=user.last_login_at,
                )
            )
            conn.commit()

    def find_user_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return row_to_user(row._mapping) if row is not None else None

    def update_last_login(self, username: str, at: str) -> bool:
        """Stamp last_login_at for username.

        Returns True if a row was updated, False if the username is unknown.
        Never inserts.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.username == username).values(last_login_at=at))
            conn.commit()
        return result.rowcount > 0

    def list_users_ordered(self) -> list[UserSummary]:
        """Return every user's public name fields, ordered by username ascending."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(_users.c.username, _users.c.first_name, _users.c.last_name).order_by(_users.c.username)
            ).fetchall()
        return [UserSummary(username=r.username, first_name=r.first_name, last_name=r.last_name) for r in rows]

    # ------------------------------------------------------------------
    # Message queries
    # ------------------------------------------------------------------

    def insert_message(self, from_username: str, to_username: str, body: str, sent_at: str) -> int:
        """Insert a message and return its assigned id.

        Raises sqlalchemy.exc.IntegrityError if either username does not exist.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _messages.insert().values(
                    from_username=from_username,
                    to_username=to_username,
                    body=body,
                    sent_at=sent_at,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def find_messages_by_sender(self, username: str) -> list[RowMapping]:
        """Messages sent by username, joined with the recipient profile (to_*), ascending id."""
        stmt = (
            select(
                _messages.c.id,
                _messages.c.body,
                _messages.c.sent_at,
                _messages.c.read_at,
                _messages.c.to_username,
                _to_user.c.first_name.label("to_first_name"),
                _to_user.c.last_name.label("to_last_name"),
                _to_user.c.phone.label("to_phone"),
            )
            .select_from(_messages.join(_to_user, _messages.c.to_username == _to_user.c.username))
            .where(_messages.c.from_username == username)
            .order_by(_messages.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [r._mapping for r in rows]

    def find_messages_by_recipient(self, username: str) -> list[RowMapping]:
        """Messages received by username, joined with the sender profile (from_*), ascending id."""
        stmt = (
            select(
                _messages.c.id,
                _messages.c.body,
                _messages.c.sent_at,
                _messages.c.read_at,
                _messages.c.from_username,
                _from_user.c.first_name.label("from_first_name"),
                _from_user.c.last_name.label("from_last_name"),
                _from_user.c.phone.label("from_phone"),
            )
            .select_from(_messages.join(_from_user, _messages.c.from_username == _from_user.c.username))
            .where(_messages.c.to_username == username)
            .order_by(_messages.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [r._mapping for r in rows]

    def find_message_by_id(self, message_id: int) -> RowMapping | None:
        """One message joined with both party profiles. Returns None if not found."""
        stmt = (
            select(
                _messages.c.id,
                _messages.c.body,
                _messages.c.sent_at,
                _messages.c.read_at,
                _messages.c.from_username,
                _from_user.c.first_name.label("from_first_name"),
                _from_user.c.last_name.label("from_last_name"),
                _from_user.c.phone.label("from_phone"),
                _messages.c.to_username,
                _to_user.c.first_name.label("to_first_name"),
                _to_user.c.last_name.label("to_last_name"),
                _to_user.c.phone.label("to_phone"),
            )
            .select_from(
                _messages.join(_from_user, _messages.c.from_username == _from_user.c.username).join(
                    _to_user, _messages.c.to_username == _to_user.c.username
                )
            )
            .where(_messages.c.id == message_id)
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return row._mapping if row is not None else None

    def mark_message_read(self, message_id: int, at: str) -> bool:
        """Set read_at if it is still NULL.

        Returns True if this call set it, False if the message is unknown or
        was already read. The WHERE clause makes the null -> set transition
        happen at most once even under concurrent calls.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _messages.update()
                .where((_messages.c.id == message_id) & (_messages.c.read_at.is_(None)))
                .values(read_at=at)
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        username=row["username"],
        hashed_password=row["hashed_password"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        phone=row["phone"],
        join_at=row["join_at"],
        last_login_at=row["last_login_at"],
    )
