"""Pure computations over snapshots of time logs (no store access)."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime

import pandas as pd

from linear_time.core.errors import ConflictError
from linear_time.core.mappers import logs_to_dataframe
from linear_time.core.models import TimeLog

SECONDS_PER_HOUR = 3600.0

_ESTIMATE_PART = re.compile(r"(\d+(?:[.,]\d+)?)\s*([hm]?)", re.IGNORECASE)


def open_logs(logs: Iterable[TimeLog]) -> list[TimeLog]:
    return [log for log in logs if log.is_open]


def assert_single_active(logs: Iterable[TimeLog]) -> None:
    """Raise ``ConflictError`` if any user has more than one open log."""
    seen: set[str] = set()
    for log in open_logs(logs):
        if log.user_id in seen:
            raise ConflictError(f"User {log.user_id} has more than one running timer")
        seen.add(log.user_id)


def time_spent_frame(logs: Iterable[TimeLog]) -> pd.DataFrame:
    """Per-issue hours over closed logs, one row per issue.

    Columns: ``issue_id``, ``issue_identifier``, ``issue_title``, ``hours``,
    ``sessions``. Open logs (no ``end_time``) are excluded.
    """
    df = logs_to_dataframe(logs)
    columns = ["issue_id", "issue_identifier", "issue_title", "hours", "sessions"]
    closed = df.dropna(subset=["start_time", "end_time"])
    if closed.empty:
        return pd.DataFrame(columns=columns)
    closed = closed.assign(hours=(closed["end_time"] - closed["start_time"]).dt.total_seconds() / SECONDS_PER_HOUR)
    grouped = (
        closed.groupby("issue_id", sort=False)
        .agg(
            issue_identifier=("issue_identifier", "last"),
            issue_title=("issue_title", "last"),
            hours=("hours", "sum"),
            sessions=("id", "count"),
        )
        .reset_index()
    )
    return grouped[columns].sort_values(by="hours", ascending=False, ignore_index=True)


def time_spent_per_issue(logs: Iterable[TimeLog]) -> dict[str, float]:
    """Map issue id to cumulative hours over closed logs."""
    frame = time_spent_frame(logs)
    return {str(row.issue_id): float(row.hours) for row in frame.itertuples(index=False)}


def elapsed_seconds(log: TimeLog | None, now: datetime) -> int:
    """Whole seconds between ``start_time`` and ``now`` (or ``end_time`` if closed)."""
    if log is None:
        return 0
    end = log.end_time or now
    return max(0, int((end - log.start_time).total_seconds()))


def format_elapsed(seconds: int) -> str:
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_estimate_hours(text: str | None) -> float | None:
    """Best-effort parse of estimate text such as "25m", "1h", "1h30m" or "2".

    A bare number is read as hours. Returns ``None`` when nothing parses; the
    estimate text itself is never rejected.
    """
    if not text:
        return None
    cleaned = text.strip().replace(" ", "")
    if not cleaned:
        return None
    total = 0.0
    pos = 0
    for match in _ESTIMATE_PART.finditer(cleaned):
        if match.start() != pos or not match.group(0):
            return None
        value = float(match.group(1).replace(",", "."))
        unit = match.group(2).lower()
        total += value / 60.0 if unit == "m" else value
        pos = match.end()
    if pos != len(cleaned):
        return None
    return total
