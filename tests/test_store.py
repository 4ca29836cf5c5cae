"""Unit tests for auth/store.py -- CredentialStore queries and the row mappers.

Covers:
- insert_user / find_user_by_username round trip; duplicate username raises IntegrityError
- update_last_login never inserts
- list_users_ordered sorts by username
- message finders return rows joined with the counterpart profile
- foreign keys reject messages to unknown users
- mark_message_read sets read_at once
- row_to_user and the messages/models.py mappers work on plain dicts
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import CredentialStore, row_to_user
from messages.models import (
    CounterpartProfile,
    message_detail_from_row,
    received_message_from_row,
    sent_message_from_row,
)

T0 = "2024-01-01T12:00:00+00:00"
T1 = "2024-01-01T13:00:00+00:00"


def _user(username: str, first: str = "First", last: str = "Last", phone: str = "555") -> User:
    return User(
        username=username,
        hashed_password=f"$2b$04$fake-digest-for-{username}",
        first_name=first,
        last_name=last,
        phone=phone,
        join_at=T0,
    )


@pytest.fixture
def populated(store: CredentialStore) -> CredentialStore:
    store.insert_user(_user("alice", "Alice", "Anders", "555-0100"))
    store.insert_user(_user("bob", "Bob", "Berg", "555-0200"))
    store.insert_user(_user("carol", "Carol", "Chen", "555-0300"))
    return store


class TestUsers:
    def test_insert_and_find(self, store: CredentialStore) -> None:
        store.insert_user(_user("alice"))
        found = store.find_user_by_username("alice")
        assert found is not None
        assert found.username == "alice"
        assert found.join_at == T0
        assert found.last_login_at is None

    def test_find_unknown_returns_none(self, store: CredentialStore) -> None:
        assert store.find_user_by_username("ghost") is None

    def test_username_is_case_sensitive(self, store: CredentialStore) -> None:
        store.insert_user(_user("alice"))
        assert store.find_user_by_username("ALICE") is None

    def test_duplicate_username_raises(self, store: CredentialStore) -> None:
        store.insert_user(_user("alice", first="Original"))
        with pytest.raises(IntegrityError):
            store.insert_user(_user("alice", first="Impostor"))
        assert store.find_user_by_username("alice").first_name == "Original"

    def test_update_last_login(self, populated: CredentialStore) -> None:
        assert populated.update_last_login("alice", T1) is True
        assert populated.find_user_by_username("alice").last_login_at == T1

    def test_update_last_login_unknown_does_not_insert(self, store: CredentialStore) -> None:
        assert store.update_last_login("ghost", T1) is False
        assert store.find_user_by_username("ghost") is None

    def test_list_users_ordered(self, store: CredentialStore) -> None:
        for name in ("mallory", "alice", "zed", "bob"):
            store.insert_user(_user(name))
        assert [u.username for u in store.list_users_ordered()] == ["alice", "bob", "mallory", "zed"]

    def test_ping(self, store: CredentialStore) -> None:
        assert store.ping() is True


class TestMessages:
    def test_insert_returns_increasing_ids(self, populated: CredentialStore) -> None:
        first = populated.insert_message("alice", "bob", "one", T0)
        second = populated.insert_message("bob", "alice", "two", T0)
        assert second > first

    def test_unknown_recipient_violates_foreign_key(self, populated: CredentialStore) -> None:
        with pytest.raises(IntegrityError):
            populated.insert_message("alice", "ghost", "hello?", T0)

    def test_find_by_sender_joins_recipient_profile(self, populated: CredentialStore) -> None:
        populated.insert_message("alice", "bob", "hi bob", T0)
        populated.insert_message("bob", "alice", "hi alice", T0)

        rows = populated.find_messages_by_sender("alice")
        assert len(rows) == 1
        row = rows[0]
        assert row["body"] == "hi bob"
        assert row["to_username"] == "bob"
        assert row["to_first_name"] == "Bob"
        assert row["to_phone"] == "555-0200"

    def test_find_by_recipient_joins_sender_profile(self, populated: CredentialStore) -> None:
        populated.insert_message("carol", "bob", "from carol", T0)

        rows = populated.find_messages_by_recipient("bob")
        assert [r["from_username"] for r in rows] == ["carol"]
        assert rows[0]["from_last_name"] == "Chen"

    def test_finders_order_by_id(self, populated: CredentialStore) -> None:
        ids = [populated.insert_message("alice", "bob", f"m{i}", T0) for i in range(4)]
        assert [r["id"] for r in populated.find_messages_by_sender("alice")] == ids
        assert [r["id"] for r in populated.find_messages_by_recipient("bob")] == ids

    def test_find_message_by_id_has_both_profiles(self, populated: CredentialStore) -> None:
        message_id = populated.insert_message("alice", "carol", "hey", T0)
        row = populated.find_message_by_id(message_id)
        assert row["from_first_name"] == "Alice"
        assert row["to_first_name"] == "Carol"
        assert populated.find_message_by_id(message_id + 100) is None

    def test_mark_read_sets_once(self, populated: CredentialStore) -> None:
        message_id = populated.insert_message("alice", "bob", "read me", T0)
        assert populated.mark_message_read(message_id, T1) is True
        assert populated.mark_message_read(message_id, "2030-01-01T00:00:00+00:00") is False
        assert populated.find_message_by_id(message_id)["read_at"] == T1

    def test_mark_read_unknown_message(self, populated: CredentialStore) -> None:
        assert populated.mark_message_read(9999, T1) is False


class TestRowMappers:
    """The mappers are pure functions -- no database needed."""

    def test_row_to_user(self) -> None:
        user = row_to_user(
            {
                "username": "alice",
                "hashed_password": "$2b$04$x",
                "first_name": "Alice",
                "last_name": "Anders",
                "phone": "555",
                "join_at": T0,
                "last_login_at": None,
            }
        )
        assert user.username == "alice"
        profile = user.to_profile()
        assert not hasattr(profile, "hashed_password")
        assert profile.join_at == T0

    def test_message_mappers(self) -> None:
        row = {
            "id": 7,
            "body": "hi",
            "sent_at": T0,
            "read_at": None,
            "from_username": "alice",
            "from_first_name": "Alice",
            "from_last_name": "Anders",
            "from_phone": "555-0100",
            "to_username": "bob",
            "to_first_name": "Bob",
            "to_last_name": "Berg",
            "to_phone": "555-0200",
        }
        bob = CounterpartProfile(username="bob", first_name="Bob", last_name="Berg", phone="555-0200")
        alice = CounterpartProfile(username="alice", first_name="Alice", last_name="Anders", phone="555-0100")

        assert sent_message_from_row(row).to_user == bob
        assert received_message_from_row(row).from_user == alice
        detail = message_detail_from_row(row)
        assert (detail.id, detail.from_user, detail.to_user) == (7, alice, bob)
