"""Domain data models for Linear issues, cycles, users, and time logs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class WorkflowStateModel:
    name: str
    color: str | None = None


@dataclass(slots=True)
class CycleModel:
    id: str
    number: int
    starts_at: datetime | None
    ends_at: datetime | None

    def contains(self, moment: datetime) -> bool:
        if self.starts_at is None or self.ends_at is None:
            return False
        return self.starts_at <= moment < self.ends_at


@dataclass(slots=True)
class AssigneeModel:
    id: str
    name: str
    avatar_url: str | None = None


@dataclass(slots=True)
class UserModel:
    id: str
    name: str
    email: str | None
    avatar_url: str | None = None
    active: bool = True


@dataclass(slots=True)
class IssueModel:
    id: str
    title: str
    identifier: str
    state: WorkflowStateModel
    cycle: CycleModel | None = None
    assignee: AssigneeModel | None = None
    url: str | None = None


@dataclass(slots=True)
class TimeLog:
    """One start/stop tracking interval for one user on one issue.

    ``end_time`` is ``None`` while the timer is running. Only ``end_time``
    (once) and ``estimate`` ever change after creation.
    """

    id: str
    user_id: str
    issue_id: str
    issue_title: str
    issue_identifier: str
    start_time: datetime
    end_time: datetime | None = None
    estimate: str | None = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(slots=True)
class IssueRef:
    """The subset of an issue copied onto a TimeLog when a timer starts."""

    id: str
    title: str
    identifier: str

    @classmethod
    def from_issue(cls, issue: IssueModel) -> IssueRef:
        return cls(id=issue.id, title=issue.title, identifier=issue.identifier)

