from datetime import UTC, datetime, timedelta

import pytest

from linear_time.core.errors import ConflictError
from linear_time.core.models import TimeLog
from linear_time.timer.aggregation import (
    assert_single_active,
    elapsed_seconds,
    format_elapsed,
    parse_estimate_hours,
    time_spent_frame,
    time_spent_per_issue,
)

T0 = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)


def _log(log_id, issue_id, start_s, end_s, user_id="alice"):
    return TimeLog(
        id=log_id,
        user_id=user_id,
        issue_id=issue_id,
        issue_title=f"Title {issue_id}",
        issue_identifier=f"ENG-{issue_id}",
        start_time=T0 + timedelta(seconds=start_s),
        end_time=None if end_s is None else T0 + timedelta(seconds=end_s),
    )


def test_time_spent_excludes_open_logs():
    logs = [
        _log("1", "A", 0, 1800),
        _log("2", "A", 0, 900),
        _log("3", "B", 0, None),
    ]
    assert time_spent_per_issue(logs) == {"A": pytest.approx(0.75)}


def test_time_spent_empty_snapshot():
    assert time_spent_per_issue([]) == {}
    assert time_spent_per_issue([_log("1", "A", 0, None)]) == {}


def test_time_spent_frame_sorted_by_hours():
    logs = [
        _log("1", "A", 0, 600),
        _log("2", "B", 0, 3600),
        _log("3", "B", 4000, 5800),
    ]
    frame = time_spent_frame(logs)
    assert list(frame["issue_id"]) == ["B", "A"]
    assert frame.loc[0, "sessions"] == 2
    assert frame.loc[0, "hours"] == pytest.approx(1.5)
    assert frame.loc[0, "issue_identifier"] == "ENG-B"


def test_assert_single_active():
    assert_single_active([_log("1", "A", 0, None), _log("2", "A", 0, None, user_id="bob")])
    with pytest.raises(ConflictError):
        assert_single_active([_log("1", "A", 0, None), _log("2", "B", 10, None)])


def test_elapsed_seconds_running_and_closed():
    running = _log("1", "A", 0, None)
    assert elapsed_seconds(running, T0 + timedelta(seconds=125)) == 125
    closed = _log("2", "A", 0, 60)
    assert elapsed_seconds(closed, T0 + timedelta(hours=5)) == 60
    assert elapsed_seconds(None, T0) == 0
    # Clock skew never yields a negative duration
    assert elapsed_seconds(running, T0 - timedelta(seconds=5)) == 0


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "00:00:00"), (59, "00:00:59"), (3661, "01:01:01"), (36000, "10:00:00"), (-3, "00:00:00")],
)
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected


@pytest.mark.parametrize(
    ("text", "hours"),
    [("25m", 25 / 60), ("1h", 1.0), ("1h30m", 1.5), ("2", 2.0), ("1.5h", 1.5), (" 45 m ", 0.75)],
)
def test_parse_estimate_hours(text, hours):
    assert parse_estimate_hours(text) == pytest.approx(hours)


@pytest.mark.parametrize("text", [None, "", "soon", "1x", "h1"])
def test_parse_estimate_hours_rejects_free_text(text):
    assert parse_estimate_hours(text) is None
