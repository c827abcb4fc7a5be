import sqlite3

import pytest

from linear_time.core.config import StartPolicy
from linear_time.core.errors import ConflictError, StoreUnavailable
from linear_time.timer.sqlite_store import SQLiteTimerStore


def test_logs_survive_reopen(tmp_path, clock, issue_a):
    path = tmp_path / "timers.sqlite3"
    store = SQLiteTimerStore(path, clock=clock)
    log = store.open_log("alice", issue_a, StartPolicy.REJECT_IF_ACTIVE)
    store.merge_estimates("alice", {"issue-a": 1.5})
    store.close()

    reopened = SQLiteTimerStore(path, clock=clock)
    [restored] = reopened.query_logs("alice", open_only=True)
    assert restored.id == log.id
    assert restored.start_time == log.start_time
    assert restored.start_time.tzinfo is not None
    assert reopened.load_estimates("alice") == {"issue-a": 1.5}
    reopened.close()


def test_unique_index_blocks_second_open_log(tmp_path, clock, issue_a):
    path = tmp_path / "timers.sqlite3"
    store = SQLiteTimerStore(path, clock=clock)
    store.open_log("alice", issue_a, StartPolicy.REJECT_IF_ACTIVE)

    # A writer bypassing the conditional start still cannot add an open row
    raw = sqlite3.connect(path)
    with pytest.raises(sqlite3.IntegrityError):
        raw.execute(
            "INSERT INTO time_logs (id, user_id, issue_id, start_time) VALUES ('x', 'alice', 'issue-a', '2025-01-01')"
        )
    raw.close()
    store.close()


def test_two_stores_on_same_file_share_the_invariant(tmp_path, clock, issue_a, issue_b):
    path = tmp_path / "timers.sqlite3"
    first = SQLiteTimerStore(path, clock=clock)
    second = SQLiteTimerStore(path, clock=clock)
    first.open_log("alice", issue_a, StartPolicy.REJECT_IF_ACTIVE)
    with pytest.raises(ConflictError):
        second.open_log("alice", issue_b, StartPolicy.REJECT_IF_ACTIVE)
    assert len(second.query_logs("alice", open_only=True)) == 1
    first.close()
    second.close()


def test_closed_connection_surfaces_store_unavailable(tmp_path, clock, issue_a):
    store = SQLiteTimerStore(tmp_path / "timers.sqlite3", clock=clock)
    store.close()
    with pytest.raises(StoreUnavailable):
        store.query_logs("alice")
    with pytest.raises(StoreUnavailable):
        store.open_log("alice", issue_a, StartPolicy.REJECT_IF_ACTIVE)


def test_unopenable_path_raises_store_unavailable(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")
    with pytest.raises(StoreUnavailable):
        SQLiteTimerStore(blocker / "timers.sqlite3")


def test_failed_subscribe_does_not_keep_listener(tmp_path, clock):
    store = SQLiteTimerStore(tmp_path / "timers.sqlite3", clock=clock)
    store.close()
    seen = []
    with pytest.raises(StoreUnavailable):
        store.subscribe("alice", seen.append)
    assert store._listeners == {}
    assert seen == []


def test_constraint_failures_other_than_open_log_are_not_conflicts(tmp_path, clock):
    store = SQLiteTimerStore(tmp_path / "timers.sqlite3", clock=clock)
    store.merge_estimates("alice", {"issue-a": 2.0})
    # NaN binds as NULL and trips the NOT NULL on hours
    with pytest.raises(StoreUnavailable):
        store.merge_estimates("alice", {"issue-a": float("nan")})
    assert store.load_estimates("alice") == {"issue-a": 2.0}
    store.close()
