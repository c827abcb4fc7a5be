from datetime import UTC, datetime

from linear_time.core.mappers import (
    ISSUE_COLUMNS,
    cycle_label,
    issues_to_dataframe,
    logs_to_dataframe,
    map_issue,
    map_user,
    parse_dt,
)
from linear_time.core.models import TimeLog


def test_parse_dt_handles_linear_timestamps():
    assert parse_dt("2025-03-09T00:00:00.000Z") == datetime(2025, 3, 9, tzinfo=UTC)
    assert parse_dt(None) is None
    assert parse_dt("not a date") is None


def test_map_issue_without_cycle_or_assignee():
    issue = map_issue({"id": "i9", "title": "Loose end", "identifier": "ENG-9", "state": None})
    assert issue.state.name == "Unknown"
    assert issue.cycle is None
    assert issue.assignee is None
    assert cycle_label(issue.cycle) == "No Cycle"


def test_map_user_defaults_active():
    user = map_user({"id": "u1", "name": "Ana", "email": "ana@x.io"})
    assert user.active is True
    assert user.avatar_url is None


def test_issues_to_dataframe_empty_keeps_columns():
    df = issues_to_dataframe([])
    assert df.empty
    assert list(df.columns) == list(ISSUE_COLUMNS)


def test_logs_to_dataframe_open_log_has_no_end():
    log = TimeLog("l1", "alice", "i1", "Fix", "ENG-1", datetime(2025, 3, 10, 9, tzinfo=UTC))
    df = logs_to_dataframe([log])
    assert str(df["start_time"].dt.tz) == "UTC"
    assert df["end_time"].isna().all()
