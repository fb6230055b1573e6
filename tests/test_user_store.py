import queue
import sqlite3

import pytest

from database.db import Database
from database.models import USER_PROFILE_ID, UserProfile
from database.user_store import UserStore
from utils.exceptions import StorageError, SubscriptionClosed


def test_subscription_starts_with_absent_profile(store):
    with store.get() as subscription:
        assert subscription.get(timeout=1) is None

    assert store.current() is None


def test_upsert_returns_stored_profile(store):
    profile = store.upsert("alice", None).result(timeout=5)

    assert profile == UserProfile(display_name="alice", avatar_reference=None)
    assert profile.id == USER_PROFILE_ID
    assert store.current() == profile


def test_observers_see_update_before_write_completes(store):
    subscription = store.get()
    assert subscription.get(timeout=1) is None

    store.upsert("alice", "file:///avatars/a.png").result(timeout=5)

    # Значення вже в черзі підписника на момент завершення запису
    assert subscription.get(timeout=0.01) == UserProfile("alice", "file:///avatars/a.png")
    subscription.close()


def test_new_subscriber_receives_current_value(store):
    store.upsert("alice", None).result(timeout=5)

    with store.get() as subscription:
        assert subscription.get(timeout=1).display_name == "alice"


def test_upsert_is_idempotent(store, database):
    subscription = store.get()
    subscription.get(timeout=1)

    first = store.upsert("alice", None).result(timeout=5)
    second = store.upsert("alice", None).result(timeout=5)

    assert first == second
    assert database.get_all_users() == [first]
    assert subscription.get(timeout=1) == first
    with pytest.raises(queue.Empty):
        subscription.get(timeout=0.05)
    subscription.close()


def test_single_row_after_many_writes(store, database):
    values = [
        ("alice", None),
        (None, "content://media/1"),
        ("bob", "content://media/2"),
        (None, None),
        ("carol", None),
    ]
    for name, avatar in values:
        store.upsert(name, avatar)
    store.upsert("dave", "file:///tmp/d.png").result(timeout=5)

    rows = database.get_all_users()
    assert len(rows) == 1
    assert rows[0].id == USER_PROFILE_ID
    assert rows[0] == UserProfile("dave", "file:///tmp/d.png")


def test_last_write_wins_in_submission_order(store):
    futures = [store.upsert(f"user{i}", None) for i in range(20)]
    for future in futures:
        future.result(timeout=5)

    assert store.current().display_name == "user19"


def test_observer_sees_every_change_in_order(store):
    subscription = store.get()
    assert subscription.get(timeout=1) is None

    for name in ["a", "b", "c"]:
        store.upsert(name, None)
    store.upsert("d", None).result(timeout=5)

    assert [subscription.get(timeout=1).display_name for _ in range(4)] == ["a", "b", "c", "d"]
    subscription.close()


def test_input_is_not_validated_or_truncated(store):
    long_name = "  a name that is much longer than twenty characters  "

    profile = store.upsert(long_name, "").result(timeout=5)

    assert profile.display_name == long_name
    assert profile.avatar_reference == ""


def test_clearing_fields_differs_from_absent_profile(store):
    profile = store.upsert(None, None).result(timeout=5)

    assert profile is not None
    assert profile.display_name is None
    assert store.current() == profile


def test_profile_survives_restart(database, tmp_path):
    first = UserStore(database)
    first.upsert("alice", "content://media/7").result(timeout=5)
    first.close()

    second = UserStore(Database(str(tmp_path / 'profile.db')))
    try:
        assert second.current() == UserProfile("alice", "content://media/7")
    finally:
        second.close()


def test_storage_error_is_surfaced(store, database):
    store.upsert("alice", None).result(timeout=5)
    conn = sqlite3.connect(database.db_file)
    conn.execute("DROP TABLE user")
    conn.commit()
    conn.close()

    future = store.upsert("bob", None)

    with pytest.raises(StorageError):
        future.result(timeout=5)
    assert store.current().display_name == "alice"


def test_storage_error_is_not_retried(store, monkeypatch):
    calls = []

    def failing_upsert(profile):
        calls.append(profile)
        raise StorageError("disk full")

    monkeypatch.setattr(store.database, 'upsert_user', failing_upsert)

    with pytest.raises(StorageError, match="disk full"):
        store.upsert("alice", None).result(timeout=5)
    assert len(calls) == 1


def test_close_ends_subscriptions(database):
    store = UserStore(database)
    subscription = store.get()
    assert subscription.get(timeout=1) is None

    store.close()

    assert list(subscription) == []
    with pytest.raises(SubscriptionClosed):
        subscription.get(timeout=1)


def test_upsert_after_close_raises(database):
    store = UserStore(database)
    store.close()

    with pytest.raises(StorageError):
        store.upsert("alice", None)


def test_closed_subscription_stops_receiving(store):
    subscription = store.get()
    subscription.get(timeout=1)
    subscription.close()

    store.upsert("alice", None).result(timeout=5)

    assert list(subscription) == []
