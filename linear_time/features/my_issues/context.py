"""Pure helpers to build the My Issues dashboard context (no Streamlit)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd
import pytz

from linear_time.core.config import CYCLE_BACKLOG, CYCLE_CURRENT, CYCLE_NEXT, TIMEZONE
from linear_time.core.cycles import classify_issue, current_cycle, group_issues_by_cycle, next_cycle
from linear_time.core.mappers import issues_to_dataframe, logs_to_dataframe
from linear_time.core.models import CycleModel, IssueModel, TimeLog
from linear_time.core.status import is_done_state
from linear_time.timer.aggregation import SECONDS_PER_HOUR, open_logs, parse_estimate_hours, time_spent_per_issue


@dataclass(slots=True)
class DashboardContext:
    """Context data for the My Issues page."""

    issues_by_cycle: dict[str, list[IssueModel]]
    table: pd.DataFrame
    classification: dict[str, str] = field(default_factory=dict)
    time_spent: dict[str, float] = field(default_factory=dict)
    estimates: dict[str, float] = field(default_factory=dict)
    active_timer: TimeLog | None = None
    current_cycle: CycleModel | None = None
    next_cycle: CycleModel | None = None
    # Summary metrics
    total_issues: int = 0
    total_hours: float = 0.0
    total_estimated: float = 0.0
    counts_by_bucket: dict[str, int] = field(default_factory=dict)


def build_dashboard_context(
    issues: Sequence[IssueModel],
    cycles: Sequence[CycleModel],
    logs: Iterable[TimeLog],
    estimates: dict[str, float] | None,
    now: datetime,
) -> DashboardContext:
    """Assemble everything the My Issues page renders.

    ``table`` has one row per issue with its cycle bucket, tracked hours,
    estimated hours, and remaining hours (estimate minus tracked, never below
    zero; empty when there is no estimate).
    """
    logs = list(logs)
    estimates = dict(estimates or {})
    spent = time_spent_per_issue(logs)
    running = open_logs(logs)

    classification = {issue.id: classify_issue(issue, cycles, now) for issue in issues}
    table = issues_to_dataframe(issues)
    if not table.empty:
        table["bucket"] = table["id"].map(classification)
        table["done"] = table["state"].apply(is_done_state)
        table["hours_spent"] = table["id"].map(spent).fillna(0.0).astype(float)
        table["estimate_hours"] = pd.to_numeric(table["id"].map(estimates), errors="coerce")
        table["remaining_hours"] = (table["estimate_hours"] - table["hours_spent"]).clip(lower=0)

    counts = {bucket: 0 for bucket in (CYCLE_CURRENT, CYCLE_NEXT, CYCLE_BACKLOG)}
    for bucket in classification.values():
        counts[bucket] = counts.get(bucket, 0) + 1

    issue_ids = {issue.id for issue in issues}
    return DashboardContext(
        issues_by_cycle=group_issues_by_cycle(issues),
        table=table,
        classification=classification,
        time_spent=spent,
        estimates=estimates,
        active_timer=running[0] if running else None,
        current_cycle=current_cycle(cycles, now),
        next_cycle=next_cycle(cycles, now),
        total_issues=len(issues),
        total_hours=float(sum(hours for issue_id, hours in spent.items() if issue_id in issue_ids)),
        total_estimated=float(sum(hours for issue_id, hours in estimates.items() if issue_id in issue_ids)),
        counts_by_bucket=counts,
    )


def sessions_table(
    logs: Iterable[TimeLog],
    now: datetime,
    tz: pytz.BaseTzInfo | None = None,
    limit: int = 50,
) -> pd.DataFrame:
    """Most recent tracking sessions with local start/end times and duration.

    The running session (if any) shows an empty end and its duration so far.
    ``estimate_hours`` is the free-text estimate parsed to hours when it parses.
    """
    df = logs_to_dataframe(logs)
    columns = ["issue_identifier", "issue_title", "start", "end", "hours", "estimate", "estimate_hours", "running"]
    if df.empty:
        return pd.DataFrame(columns=columns)
    tz = tz or pytz.timezone(TIMEZONE)
    now_ts = pd.Timestamp(now)
    if now_ts.tzinfo is None:
        now_ts = now_ts.tz_localize("UTC")
    df["running"] = df["end_time"].isna()
    effective_end = df["end_time"].fillna(now_ts)
    df["hours"] = (effective_end - df["start_time"]).dt.total_seconds().clip(lower=0) / SECONDS_PER_HOUR
    df["start"] = df["start_time"].dt.tz_convert(tz)
    df["end"] = df["end_time"].dt.tz_convert(tz)
    df["estimate_hours"] = df["estimate"].map(parse_estimate_hours).astype(float)
    df = df.sort_values(by="start_time", ascending=False).head(limit)
    return df[columns].reset_index(drop=True)
