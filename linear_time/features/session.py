"""Per-session context: signed-in identity, timer engine, and live timer state."""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field

from linear_time.core.auth import Identity
from linear_time.core.models import TimeLog
from linear_time.timer.engine import TimerEngine
from linear_time.timer.store import Subscription

logger = logging.getLogger(__name__)


def _weak_callback(method) -> Callable:
    """Wrap a bound method so the store never keeps its owner alive."""
    ref = weakref.WeakMethod(method)

    def _call(value) -> None:
        target = ref()
        if target is not None:
            target(value)

    return _call


def _cancel_all(subscriptions: list[Subscription]) -> None:
    for subscription in subscriptions:
        subscription.cancel()
    subscriptions.clear()


@dataclass
class SessionContext:
    """Everything a page needs about the current user, scoped to one login.

    Subscriptions opened through ``watch`` keep ``active_timer`` and
    ``time_spent`` current until ``close`` is called or the context is
    garbage collected (a browser session that simply goes away).
    """

    identity: Identity
    engine: TimerEngine
    linear_user_id: str | None = None
    active_timer: TimeLog | None = None
    time_spent: dict[str, float] = field(default_factory=dict)
    _subscriptions: list[Subscription] = field(default_factory=list, repr=False)
    _finalizer: weakref.finalize | None = field(default=None, repr=False, compare=False)

    @property
    def user_id(self) -> str:
        return self.identity.uid

    @property
    def watching(self) -> bool:
        return any(s.active for s in self._subscriptions)

    def watch(self) -> None:
        if self.watching:
            return
        try:
            self._subscriptions.append(
                self.engine.subscribe_active_timer(self.user_id, _weak_callback(self._set_active_timer))
            )
            self._subscriptions.append(
                self.engine.subscribe_time_spent(self.user_id, _weak_callback(self._set_time_spent))
            )
        except Exception:
            _cancel_all(self._subscriptions)
            raise
        if self._finalizer is None:
            self._finalizer = weakref.finalize(self, _cancel_all, self._subscriptions)
        logger.debug("Watching timer state for %s", self.user_id)

    def close(self) -> None:
        _cancel_all(self._subscriptions)
        self.active_timer = None
        self.time_spent = {}

    def _set_active_timer(self, log: TimeLog | None) -> None:
        self.active_timer = log

    def _set_time_spent(self, spent: dict[str, float]) -> None:
        self.time_spent = spent
