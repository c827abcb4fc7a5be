"""IssueService: fetches Linear data and maps it into domain models."""

from __future__ import annotations

import logging
from collections.abc import Callable

import pandas as pd

from .linear_client import LinearAPI
from .mappers import issues_to_dataframe, map_cycle, map_issue, map_user
from .models import CycleModel, IssueModel, UserModel
from .status import is_excluded_state

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


class IssueService:
    def __init__(self, api: LinearAPI):
        self.api = api

    # ------------------ Fetch Methods ------------------
    def fetch_issues(self, *, progress: ProgressCallback | None = None) -> list[IssueModel]:
        if progress:
            progress("Querying issues from Linear", None, None)
        raw = self.api.fetch_issues()
        issues = [map_issue(r) for r in raw]
        # The query already filters canceled issues; guard against cached payloads
        return [i for i in issues if not is_excluded_state(i.state.name)]

    def fetch_my_issues(
        self,
        assignee_id: str | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[IssueModel]:
        """Fetch issues, optionally restricted to one assignee."""
        issues = self.fetch_issues(progress=progress)
        if assignee_id is None:
            return issues
        mine = [i for i in issues if i.assignee is not None and i.assignee.id == assignee_id]
        logger.debug("Filtered %s of %s issues to assignee %s", len(mine), len(issues), assignee_id)
        return mine

    def fetch_cycles(self) -> list[CycleModel]:
        cycles = [map_cycle(r) for r in self.api.fetch_cycles()]
        return [c for c in cycles if c is not None]

    def fetch_users(self) -> list[UserModel]:
        return [map_user(r) for r in self.api.fetch_users()]

    def find_user_by_email(self, email: str | None) -> UserModel | None:
        """Match a signed-in email to an active Linear user (case-insensitive)."""
        if not email:
            return None
        wanted = email.strip().lower()
        for user in self.fetch_users():
            if user.email and user.email.strip().lower() == wanted:
                return user
        return None

    def fetch_issue_frame(self, assignee_id: str | None = None) -> pd.DataFrame:
        return issues_to_dataframe(self.fetch_my_issues(assignee_id))

    def refresh(self) -> None:
        if hasattr(self.api, "clear_cache"):
            self.api.clear_cache()
