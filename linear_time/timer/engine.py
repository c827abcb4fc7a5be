"""TimerEngine: start/stop/estimate operations over a TimerStore."""

from __future__ import annotations

import logging
from collections.abc import Callable

from linear_time.core.config import StartPolicy
from linear_time.core.errors import NotFoundError
from linear_time.core.models import IssueModel, IssueRef, TimeLog

from .aggregation import open_logs, time_spent_per_issue
from .store import Subscription, TimerStore

logger = logging.getLogger(__name__)


class TimerEngine:
    """Enforces one running timer per user and exposes time aggregation.

    The start policy is fixed per engine: ``REJECT_IF_ACTIVE`` raises
    ``ConflictError`` when the user already has a running timer,
    ``AUTO_STOP`` closes it and starts the new one. Either way the check and
    the insert happen in one store operation.
    """

    def __init__(self, store: TimerStore, policy: StartPolicy = StartPolicy.REJECT_IF_ACTIVE):
        self.store = store
        self.policy = policy

    # ------------------ Timer lifecycle ------------------
    def start_timer(self, user_id: str, issue: IssueModel | IssueRef) -> str:
        ref = issue if isinstance(issue, IssueRef) else IssueRef.from_issue(issue)
        log = self.store.open_log(user_id, ref, self.policy)
        logger.info("Started timer %s for user %s on %s", log.id, user_id, ref.identifier)
        return log.id

    def stop_timer(self, timer_id: str) -> TimeLog:
        log = self.store.close_log(timer_id)
        logger.info("Stopped timer %s", timer_id)
        return log

    def update_estimate(self, timer_id: str, estimate: str | None) -> TimeLog:
        return self.store.set_estimate(timer_id, estimate)

    def get_timer(self, timer_id: str) -> TimeLog:
        log = self.store.get_log(timer_id)
        if log is None:
            raise NotFoundError(timer_id)
        return log

    def active_timer(self, user_id: str) -> TimeLog | None:
        running = self.store.query_logs(user_id, open_only=True)
        return running[0] if running else None

    def logs_for_user(self, user_id: str) -> list[TimeLog]:
        return self.store.query_logs(user_id)

    # ------------------ Aggregation ------------------
    def compute_time_spent_per_issue(self, user_id: str) -> dict[str, float]:
        return time_spent_per_issue(self.store.query_logs(user_id))

    # ------------------ Estimates ------------------
    def save_estimates(self, user_id: str, estimates: dict[str, float]) -> dict[str, float]:
        logger.debug("Saving %s estimates for user %s", len(estimates), user_id)
        return self.store.merge_estimates(user_id, estimates)

    def load_estimates(self, user_id: str) -> dict[str, float]:
        return self.store.load_estimates(user_id)

    # ------------------ Live updates ------------------
    def subscribe_active_timer(
        self, user_id: str, callback: Callable[[TimeLog | None], None]
    ) -> Subscription:
        def _on_logs(logs: list[TimeLog]) -> None:
            running = open_logs(logs)
            callback(running[0] if running else None)

        return self.store.subscribe(user_id, _on_logs)

    def subscribe_time_spent(
        self, user_id: str, callback: Callable[[dict[str, float]], None]
    ) -> Subscription:
        return self.store.subscribe(user_id, lambda logs: callback(time_spent_per_issue(logs)))
