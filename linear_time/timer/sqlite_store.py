"""SQLite-backed Timer Store.

A partial unique index allows at most one row with ``end_time IS NULL`` per
user, and every write runs inside ``BEGIN IMMEDIATE`` so the conditional start
is a single serialized transaction even across processes sharing the file.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from linear_time.core.config import TIME_LOGS_COLLECTION, USER_ESTIMATES_COLLECTION, StartPolicy
from linear_time.core.errors import ConflictError, NotFoundError, StoreUnavailable
from linear_time.core.models import IssueRef, TimeLog

from .store import Clock, TimerStore, new_log_id

logger = logging.getLogger(__name__)

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TIME_LOGS_COLLECTION} (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    issue_id TEXT NOT NULL,
    issue_title TEXT NOT NULL DEFAULT '',
    issue_identifier TEXT NOT NULL DEFAULT '',
    start_time TEXT NOT NULL,
    end_time TEXT,
    estimate TEXT,
    CHECK (end_time IS NULL OR end_time >= start_time)
);
CREATE UNIQUE INDEX IF NOT EXISTS one_open_log_per_user
    ON {TIME_LOGS_COLLECTION} (user_id) WHERE end_time IS NULL;
CREATE INDEX IF NOT EXISTS time_logs_by_user ON {TIME_LOGS_COLLECTION} (user_id);
CREATE TABLE IF NOT EXISTS {USER_ESTIMATES_COLLECTION} (
    user_id TEXT NOT NULL,
    issue_id TEXT NOT NULL,
    hours REAL NOT NULL,
    PRIMARY KEY (user_id, issue_id)
);
"""

LOG_FIELDS = "id, user_id, issue_id, issue_title, issue_identifier, start_time, end_time, estimate"


def _to_text(value: datetime) -> str:
    # Fixed width so text comparison matches chronological order
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _from_text(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _is_open_log_conflict(exc: sqlite3.IntegrityError) -> bool:
    # Only the one_open_log_per_user index fails on time_logs.user_id alone
    return f"UNIQUE constraint failed: {TIME_LOGS_COLLECTION}.user_id" in str(exc)


def _row_to_log(row: sqlite3.Row) -> TimeLog:
    return TimeLog(
        id=row["id"],
        user_id=row["user_id"],
        issue_id=row["issue_id"],
        issue_title=row["issue_title"],
        issue_identifier=row["issue_identifier"],
        start_time=_from_text(row["start_time"]),
        end_time=_from_text(row["end_time"]),
        estimate=row["estimate"],
    )


class SQLiteTimerStore(TimerStore):
    def __init__(self, path: str | Path, clock: Clock | None = None):
        super().__init__(clock)
        self.path = str(path)
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.path, timeout=10.0, check_same_thread=False, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Cannot open timer store at {self.path}: {exc}") from exc
        self._lock = threading.Lock()
        logger.debug("Opened timer store %s", self.path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise StoreUnavailable(f"Timer store unavailable: {exc}") from exc
            try:
                yield self._conn
            except sqlite3.IntegrityError as exc:
                self._conn.execute("ROLLBACK")
                if _is_open_log_conflict(exc):
                    raise ConflictError() from exc
                raise StoreUnavailable(f"Timer store rejected write: {exc}") from exc
            except sqlite3.Error as exc:
                self._conn.execute("ROLLBACK")
                raise StoreUnavailable(f"Timer store write failed: {exc}") from exc
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")

    def _read(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise StoreUnavailable(f"Timer store read failed: {exc}") from exc

    @staticmethod
    def _fetch_log(conn: sqlite3.Connection, log_id: str) -> TimeLog:
        row = conn.execute(f"SELECT {LOG_FIELDS} FROM {TIME_LOGS_COLLECTION} WHERE id = ?", (log_id,)).fetchone()
        if row is None:
            raise NotFoundError(log_id)
        return _row_to_log(row)

    # ------------------ Time logs ------------------
    def open_log(self, user_id: str, issue: IssueRef, policy: StartPolicy) -> TimeLog:
        with self._transaction() as conn:
            running = [
                _row_to_log(row)
                for row in conn.execute(
                    f"SELECT {LOG_FIELDS} FROM {TIME_LOGS_COLLECTION} WHERE user_id = ? AND end_time IS NULL",
                    (user_id,),
                ).fetchall()
            ]
            if running and policy is StartPolicy.REJECT_IF_ACTIVE:
                raise ConflictError()
            for log in running:
                conn.execute(
                    f"UPDATE {TIME_LOGS_COLLECTION} SET end_time = ? WHERE id = ? AND end_time IS NULL",
                    (_to_text(self._end_time_for(log)), log.id),
                )
                logger.debug("Auto-stopped log %s for user %s", log.id, user_id)
            created = TimeLog(
                id=new_log_id(),
                user_id=user_id,
                issue_id=issue.id,
                issue_title=issue.title,
                issue_identifier=issue.identifier,
                start_time=_from_text(_to_text(self.clock())),
            )
            conn.execute(
                f"INSERT INTO {TIME_LOGS_COLLECTION} ({LOG_FIELDS}) VALUES (?, ?, ?, ?, ?, ?, NULL, NULL)",
                (
                    created.id,
                    created.user_id,
                    created.issue_id,
                    created.issue_title,
                    created.issue_identifier,
                    _to_text(created.start_time),
                ),
            )
        self._notify(user_id)
        return created

    def get_log(self, log_id: str) -> TimeLog | None:
        rows = self._read(f"SELECT {LOG_FIELDS} FROM {TIME_LOGS_COLLECTION} WHERE id = ?", (log_id,))
        return _row_to_log(rows[0]) if rows else None

    def query_logs(self, user_id: str, *, open_only: bool = False) -> list[TimeLog]:
        sql = f"SELECT {LOG_FIELDS} FROM {TIME_LOGS_COLLECTION} WHERE user_id = ?"
        if open_only:
            sql += " AND end_time IS NULL"
        sql += " ORDER BY start_time"
        return [_row_to_log(row) for row in self._read(sql, (user_id,))]

    def close_log(self, log_id: str) -> TimeLog:
        with self._transaction() as conn:
            log = self._fetch_log(conn, log_id)
            if not log.is_open:
                return log
            end = _to_text(self._end_time_for(log))
            conn.execute(
                f"UPDATE {TIME_LOGS_COLLECTION} SET end_time = ? WHERE id = ? AND end_time IS NULL",
                (end, log_id),
            )
            log = self._fetch_log(conn, log_id)
        self._notify(log.user_id)
        return log

    def set_estimate(self, log_id: str, estimate: str | None) -> TimeLog:
        with self._transaction() as conn:
            self._fetch_log(conn, log_id)
            conn.execute(f"UPDATE {TIME_LOGS_COLLECTION} SET estimate = ? WHERE id = ?", (estimate, log_id))
            log = self._fetch_log(conn, log_id)
        self._notify(log.user_id)
        return log

    # ------------------ Estimates ------------------
    def merge_estimates(self, user_id: str, estimates: dict[str, float]) -> dict[str, float]:
        with self._transaction() as conn:
            conn.executemany(
                f"INSERT INTO {USER_ESTIMATES_COLLECTION} (user_id, issue_id, hours) VALUES (?, ?, ?) "
                "ON CONFLICT (user_id, issue_id) DO UPDATE SET hours = excluded.hours",
                [(user_id, issue_id, float(hours)) for issue_id, hours in estimates.items()],
            )
        return self.load_estimates(user_id)

    def load_estimates(self, user_id: str) -> dict[str, float]:
        rows = self._read(
            f"SELECT issue_id, hours FROM {USER_ESTIMATES_COLLECTION} WHERE user_id = ?",
            (user_id,),
        )
        return {row["issue_id"]: row["hours"] for row in rows}
