"""Mapping raw Linear GraphQL nodes into model instances and DataFrames."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .config import CYCLE_LABEL_TEMPLATE, NO_CYCLE_LABEL
from .models import (
    AssigneeModel,
    CycleModel,
    IssueModel,
    TimeLog,
    UserModel,
    WorkflowStateModel,
)

ISSUE_COLUMNS = (
    "id",
    "identifier",
    "title",
    "state",
    "state_color",
    "cycle",
    "cycle_number",
    "assignee",
    "assignee_id",
    "url",
)

LOG_COLUMNS = (
    "id",
    "user_id",
    "issue_id",
    "issue_identifier",
    "issue_title",
    "start_time",
    "end_time",
    "estimate",
)


def parse_dt(val):
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def map_cycle(raw: dict[str, Any] | None) -> CycleModel | None:
    if not raw:
        return None
    return CycleModel(
        id=raw.get("id"),
        number=int(raw.get("number") or 0),
        starts_at=parse_dt(raw.get("startsAt")),
        ends_at=parse_dt(raw.get("endsAt")),
    )


def map_user(raw: dict[str, Any]) -> UserModel:
    return UserModel(
        id=raw.get("id"),
        name=raw.get("name") or "",
        email=raw.get("email"),
        avatar_url=raw.get("avatarUrl"),
        active=bool(raw.get("active", True)),
    )


def map_issue(raw: dict[str, Any]) -> IssueModel:
    state_raw = raw.get("state") or {}
    assignee_raw = raw.get("assignee")
    assignee = None
    if assignee_raw:
        assignee = AssigneeModel(
            id=assignee_raw.get("id"),
            name=assignee_raw.get("name") or "",
            avatar_url=assignee_raw.get("avatarUrl"),
        )
    return IssueModel(
        id=raw.get("id"),
        title=raw.get("title") or "",
        identifier=raw.get("identifier") or "",
        state=WorkflowStateModel(name=state_raw.get("name") or "Unknown", color=state_raw.get("color")),
        cycle=map_cycle(raw.get("cycle")),
        assignee=assignee,
        url=raw.get("url"),
    )


def cycle_label(cycle: CycleModel | None) -> str:
    if cycle is None:
        return NO_CYCLE_LABEL
    return CYCLE_LABEL_TEMPLATE.format(number=cycle.number)


def issues_to_dataframe(issues: Iterable[IssueModel]) -> pd.DataFrame:
    rows = []
    for i in issues:
        rows.append(
            {
                "id": i.id,
                "identifier": i.identifier,
                "title": i.title,
                "state": i.state.name,
                "state_color": i.state.color,
                "cycle": cycle_label(i.cycle),
                "cycle_number": i.cycle.number if i.cycle else None,
                "assignee": i.assignee.name if i.assignee else "Unassigned",
                "assignee_id": i.assignee.id if i.assignee else None,
                "url": i.url,
            }
        )
    if not rows:
        return pd.DataFrame(columns=list(ISSUE_COLUMNS))
    return pd.DataFrame(rows, columns=list(ISSUE_COLUMNS))


def logs_to_dataframe(logs: Iterable[TimeLog]) -> pd.DataFrame:
    rows = [
        {
            "id": log.id,
            "user_id": log.user_id,
            "issue_id": log.issue_id,
            "issue_identifier": log.issue_identifier,
            "issue_title": log.issue_title,
            "start_time": log.start_time,
            "end_time": log.end_time,
            "estimate": log.estimate,
        }
        for log in logs
    ]
    df = pd.DataFrame(rows, columns=list(LOG_COLUMNS))
    for col in ("start_time", "end_time"):
        df[col] = pd.to_datetime(df[col], utc=True, errors="coerce")
    return df
