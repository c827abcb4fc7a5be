"""Cycle lookup and issue classification (current / next / backlog)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from .config import CYCLE_BACKLOG, CYCLE_CURRENT, CYCLE_NEXT, NO_CYCLE_LABEL
from .mappers import cycle_label
from .models import CycleModel, IssueModel


def current_cycle(cycles: Sequence[CycleModel], now: datetime) -> CycleModel | None:
    """Return the cycle whose [starts_at, ends_at) interval contains ``now``."""
    for cycle in cycles:
        if cycle.contains(now):
            return cycle
    return None


def next_cycle(cycles: Sequence[CycleModel], now: datetime) -> CycleModel | None:
    """Return the cycle numbered ``current + 1``.

    When no cycle is current, the earliest cycle (lowest number) is treated as
    next.
    """
    if not cycles:
        return None
    current = current_cycle(cycles, now)
    if current is None:
        return min(cycles, key=lambda c: c.number)
    for cycle in cycles:
        if cycle.number == current.number + 1:
            return cycle
    return None


def classify_issue(issue: IssueModel, cycles: Sequence[CycleModel], now: datetime) -> str:
    if issue.cycle is None:
        return CYCLE_BACKLOG
    current = current_cycle(cycles, now)
    if current is not None and issue.cycle.id == current.id:
        return CYCLE_CURRENT
    upcoming = next_cycle(cycles, now)
    if upcoming is not None and issue.cycle.id == upcoming.id:
        return CYCLE_NEXT
    return CYCLE_BACKLOG


def group_issues_by_cycle(issues: Iterable[IssueModel]) -> dict[str, list[IssueModel]]:
    """Group issues under "Cycle N" labels, newest cycle first, "No Cycle" last."""
    grouped: dict[str, list[IssueModel]] = {}
    numbers: dict[str, int] = {}
    for issue in issues:
        label = cycle_label(issue.cycle)
        grouped.setdefault(label, []).append(issue)
        if issue.cycle is not None:
            numbers[label] = issue.cycle.number

    def _sort_key(label: str):
        if label == NO_CYCLE_LABEL:
            return (1, 0)
        return (0, -numbers.get(label, 0))

    return {label: grouped[label] for label in sorted(grouped, key=_sort_key)}
