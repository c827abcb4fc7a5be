from datetime import UTC, datetime, timedelta

import pandas as pd
import pytest
import pytz

from linear_time.core.models import CycleModel, IssueModel, TimeLog, WorkflowStateModel
from linear_time.features.my_issues import build_dashboard_context, sessions_table

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


def _sample():
    c5 = CycleModel(id="c5", number=5, starts_at=NOW - timedelta(days=1), ends_at=NOW + timedelta(days=1))
    c6 = CycleModel(id="c6", number=6, starts_at=NOW + timedelta(days=1), ends_at=NOW + timedelta(days=8))
    issues = [
        IssueModel("i1", "Fix login", "ENG-1", WorkflowStateModel("In Progress"), cycle=c5),
        IssueModel("i2", "Export", "ENG-2", WorkflowStateModel("Done"), cycle=c6),
        IssueModel("i3", "Backlog item", "ENG-3", WorkflowStateModel("Todo")),
    ]
    logs = [
        TimeLog("l1", "alice", "i1", "Fix login", "ENG-1", NOW - timedelta(hours=3), NOW - timedelta(hours=1)),
        TimeLog("l2", "alice", "i2", "Export", "ENG-2", NOW - timedelta(minutes=30), None, estimate="1h"),
    ]
    return issues, [c5, c6], logs


def test_build_dashboard_context():
    issues, cycles, logs = _sample()
    ctx = build_dashboard_context(issues, cycles, logs, {"i1": 3.0, "other": 9.0}, NOW)

    assert list(ctx.issues_by_cycle) == ["Cycle 6", "Cycle 5", "No Cycle"]
    assert ctx.classification == {"i1": "current", "i2": "next", "i3": "backlog"}
    assert ctx.counts_by_bucket == {"current": 1, "next": 1, "backlog": 1}
    assert ctx.active_timer.id == "l2"
    assert ctx.current_cycle.id == "c5"
    assert ctx.next_cycle.id == "c6"
    assert ctx.total_hours == pytest.approx(2.0)
    assert ctx.total_estimated == pytest.approx(3.0)

    table = ctx.table.set_index("id")
    assert table.loc["i1", "hours_spent"] == pytest.approx(2.0)
    assert table.loc["i1", "remaining_hours"] == pytest.approx(1.0)
    assert table.loc["i2", "hours_spent"] == 0.0
    assert bool(table.loc["i2", "done"]) is True
    assert pd.isna(table.loc["i3", "estimate_hours"])


def test_build_dashboard_context_without_issues():
    ctx = build_dashboard_context([], [], [], None, NOW)
    assert ctx.total_issues == 0
    assert ctx.table.empty
    assert ctx.active_timer is None
    assert ctx.issues_by_cycle == {}


def test_sessions_table_localizes_and_marks_running():
    _, _, logs = _sample()
    tz = pytz.timezone("America/Sao_Paulo")
    out = sessions_table(logs, NOW, tz=tz)
    assert list(out["issue_identifier"]) == ["ENG-2", "ENG-1"]
    assert list(out["running"]) == [True, False]
    assert out.loc[0, "hours"] == pytest.approx(0.5)
    assert out.loc[1, "hours"] == pytest.approx(2.0)
    assert out.loc[0, "estimate_hours"] == pytest.approx(1.0)
    assert pd.isna(out.loc[1, "estimate_hours"])
    assert str(out.loc[1, "start"].tzinfo) == "America/Sao_Paulo"
    assert out.loc[1, "start"].hour == 6  # 09:00 UTC


def test_sessions_table_empty():
    assert sessions_table([], NOW).empty
