"""Timer Store: time logs and per-user estimate maps with change subscriptions.

``TimerStore`` defines the document-store surface the engine relies on. Every
conditional write (``open_log``, ``close_log``) is atomic inside the store, so
the "query active timer, then create" sequence can never interleave with a
concurrent start for the same user.
"""

from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from linear_time.core.config import StartPolicy
from linear_time.core.errors import ConflictError, NotFoundError
from linear_time.core.models import IssueRef, TimeLog

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
LogsListener = Callable[[list[TimeLog]], None]


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_log_id() -> str:
    return uuid.uuid4().hex


class Subscription:
    """Cancellable handle returned by ``TimerStore.subscribe``."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._cancel()


class TimerStore(ABC):
    def __init__(self, clock: Clock | None = None):
        self.clock = clock or utc_now
        self._listeners: dict[str, list[LogsListener]] = {}
        self._listeners_lock = threading.Lock()

    # ------------------ Time logs ------------------
    @abstractmethod
    def open_log(self, user_id: str, issue: IssueRef, policy: StartPolicy) -> TimeLog:
        """Atomically create a running log for ``user_id``.

        With ``REJECT_IF_ACTIVE`` an existing open log raises ``ConflictError``;
        with ``AUTO_STOP`` every open log of the user is closed first.
        """

    @abstractmethod
    def get_log(self, log_id: str) -> TimeLog | None: ...

    @abstractmethod
    def query_logs(self, user_id: str, *, open_only: bool = False) -> list[TimeLog]: ...

    @abstractmethod
    def close_log(self, log_id: str) -> TimeLog:
        """Set ``end_time`` if the log is still open; closed logs are returned unchanged."""

    @abstractmethod
    def set_estimate(self, log_id: str, estimate: str | None) -> TimeLog: ...

    # ------------------ Estimates ------------------
    @abstractmethod
    def merge_estimates(self, user_id: str, estimates: dict[str, float]) -> dict[str, float]: ...

    @abstractmethod
    def load_estimates(self, user_id: str) -> dict[str, float]: ...

    # ------------------ Subscriptions ------------------
    def subscribe(self, user_id: str, listener: LogsListener) -> Subscription:
        """Call ``listener`` with the user's logs now and after every change."""
        with self._listeners_lock:
            self._listeners.setdefault(user_id, []).append(listener)

        def _cancel() -> None:
            with self._listeners_lock:
                listeners = self._listeners.get(user_id, [])
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(user_id, None)

        handle = Subscription(_cancel)
        try:
            snapshot = self.query_logs(user_id)
        except Exception:
            handle.cancel()
            raise
        listener(snapshot)
        return handle

    def _notify(self, user_id: str) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners.get(user_id, []))
        if not listeners:
            return
        snapshot = self.query_logs(user_id)
        for listener in listeners:
            try:
                listener(list(snapshot))
            except Exception:
                logger.exception("Timer store listener failed for user %s", user_id)

    def _end_time_for(self, log: TimeLog) -> datetime:
        now = self.clock()
        return now if now >= log.start_time else log.start_time


class InMemoryTimerStore(TimerStore):
    """Dict-backed store; a single lock serializes every write."""

    def __init__(self, clock: Clock | None = None):
        super().__init__(clock)
        self._logs: dict[str, TimeLog] = {}
        self._estimates: dict[str, dict[str, float]] = {}
        self._lock = threading.Lock()

    def open_log(self, user_id: str, issue: IssueRef, policy: StartPolicy) -> TimeLog:
        with self._lock:
            running = [log for log in self._logs.values() if log.user_id == user_id and log.is_open]
            if running and policy is StartPolicy.REJECT_IF_ACTIVE:
                raise ConflictError()
            for log in running:
                self._logs[log.id] = replace(log, end_time=self._end_time_for(log))
                logger.debug("Auto-stopped log %s for user %s", log.id, user_id)
            created = TimeLog(
                id=new_log_id(),
                user_id=user_id,
                issue_id=issue.id,
                issue_title=issue.title,
                issue_identifier=issue.identifier,
                start_time=self.clock(),
            )
            self._logs[created.id] = created
        self._notify(user_id)
        return created

    def get_log(self, log_id: str) -> TimeLog | None:
        with self._lock:
            return self._logs.get(log_id)

    def query_logs(self, user_id: str, *, open_only: bool = False) -> list[TimeLog]:
        with self._lock:
            logs = [
                log
                for log in self._logs.values()
                if log.user_id == user_id and (not open_only or log.is_open)
            ]
        return sorted(logs, key=lambda log: log.start_time)

    def close_log(self, log_id: str) -> TimeLog:
        with self._lock:
            log = self._logs.get(log_id)
            if log is None:
                raise NotFoundError(log_id)
            if not log.is_open:
                return log
            log = replace(log, end_time=self._end_time_for(log))
            self._logs[log_id] = log
        self._notify(log.user_id)
        return log

    def set_estimate(self, log_id: str, estimate: str | None) -> TimeLog:
        with self._lock:
            log = self._logs.get(log_id)
            if log is None:
                raise NotFoundError(log_id)
            log = replace(log, estimate=estimate)
            self._logs[log_id] = log
        self._notify(log.user_id)
        return log

    def merge_estimates(self, user_id: str, estimates: dict[str, float]) -> dict[str, float]:
        with self._lock:
            merged = self._estimates.setdefault(user_id, {})
            merged.update(estimates)
            return dict(merged)

    def load_estimates(self, user_id: str) -> dict[str, float]:
        with self._lock:
            return dict(self._estimates.get(user_id, {}))
