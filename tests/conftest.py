"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import linear_time` works.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from linear_time.core.models import IssueRef  # noqa: E402
from linear_time.timer.sqlite_store import SQLiteTimerStore  # noqa: E402
from linear_time.timer.store import InMemoryTimerStore  # noqa: E402


class FakeClock:
    """Deterministic store clock; ``advance`` moves it forward."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 3, 10, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, clock, tmp_path):
    if request.param == "memory":
        yield InMemoryTimerStore(clock=clock)
    else:
        sqlite_store = SQLiteTimerStore(tmp_path / "timers.sqlite3", clock=clock)
        yield sqlite_store
        sqlite_store.close()


@pytest.fixture
def issue_a():
    return IssueRef(id="issue-a", title="Fix login redirect", identifier="ENG-101")


@pytest.fixture
def issue_b():
    return IssueRef(id="issue-b", title="Cycle report export", identifier="ENG-102")
