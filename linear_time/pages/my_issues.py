"""My Issues page - assigned issues grouped by cycle, with timers and estimates."""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from linear_time.app import register_page
from linear_time.core.config import CYCLE_CURRENT, CYCLE_NEXT
from linear_time.core.errors import MissingCredential, TimeTrackerError
from linear_time.core.service import IssueService
from linear_time.features.my_issues import DashboardContext, build_dashboard_context, sessions_table
from linear_time.features.session import SessionContext
from linear_time.timer.store import utc_now
from linear_time.visual.charts import time_vs_estimate_chart
from linear_time.visual.tables import prepare_issue_table
from linear_time.visual.timer_bar import render_active_timer

logger = logging.getLogger(__name__)

BUCKET_BADGES = {
    CYCLE_CURRENT: ":green[current]",
    CYCLE_NEXT: ":blue[next]",
}


def _resolve_linear_user(ctx: SessionContext, service: IssueService) -> str | None:
    if ctx.linear_user_id:
        return ctx.linear_user_id
    user = service.find_user_by_email(ctx.identity.email)
    if user is not None:
        ctx.linear_user_id = user.id
    return ctx.linear_user_id


def _start(ctx: SessionContext, issue) -> None:
    try:
        ctx.engine.start_timer(ctx.user_id, issue)
    except TimeTrackerError as exc:
        st.error(str(exc))
    else:
        st.rerun()


def _render_cycle_sections(ctx: SessionContext, dash: DashboardContext) -> None:
    running_issue = dash.active_timer.issue_id if dash.active_timer else None
    for label, issues in dash.issues_by_cycle.items():
        st.subheader(label)
        for issue in issues:
            bucket = dash.classification.get(issue.id)
            badge = BUCKET_BADGES.get(bucket, "")
            spent = dash.time_spent.get(issue.id, 0.0)
            estimate = dash.estimates.get(issue.id)
            cols = st.columns([1, 6, 2, 1])
            cols[0].caption(issue.identifier)
            cols[1].write(f"{issue.title} {badge}".strip())
            detail = f"{issue.state.name} · {spent:.2f}h"
            if estimate is not None:
                detail += f" / {estimate:.2f}h"
            cols[2].caption(detail)
            if issue.id == running_issue:
                cols[3].caption("Running")
            elif cols[3].button("Start", key=f"start_{issue.id}"):
                _start(ctx, issue)


def _render_estimates_editor(ctx: SessionContext, dash: DashboardContext) -> None:
    table, display_cols, cfg = prepare_issue_table(dash.table)
    if table.empty:
        return
    edited = st.data_editor(
        table[display_cols],
        hide_index=True,
        width="stretch",
        column_config=cfg,
        disabled=[c for c in display_cols if c != "estimate_hours"],
        key="estimates_editor",
    )
    if not st.button("Save estimates"):
        return
    before = pd.to_numeric(table["estimate_hours"], errors="coerce")
    after = pd.to_numeric(edited["estimate_hours"], errors="coerce")
    changed: dict[str, float] = {}
    for idx in table.index:
        new_val = after.loc[idx]
        if pd.isna(new_val):
            continue
        if pd.isna(before.loc[idx]) or float(before.loc[idx]) != float(new_val):
            changed[str(table.loc[idx, "id"])] = float(new_val)
    if not changed:
        st.info("No estimate changes to save.")
        return
    try:
        ctx.engine.save_estimates(ctx.user_id, changed)
    except TimeTrackerError as exc:
        st.error(str(exc))
        return
    st.success(f"Saved {len(changed)} estimate(s).")


@register_page("My Issues")
def my_issues_page(ctx: SessionContext):
    st.title("My Issues")

    service = st.session_state.get("issue_service")
    if service is None:
        st.warning("Linear is not connected. Open the Settings page to add your API token.")
        return

    show_all = st.sidebar.toggle("Show all issues", value=False)
    if st.sidebar.button("Refresh issues"):
        service.refresh()

    try:
        assignee_id = None if show_all else _resolve_linear_user(ctx, service)
        if not show_all and assignee_id is None:
            st.caption("No Linear user matches your email; showing all issues.")
        with st.spinner("Loading issues..."):
            issues = service.fetch_my_issues(assignee_id)
            cycles = service.fetch_cycles()
    except MissingCredential:
        st.error("No API Token found. Add one on the Settings page.")
        return
    except TimeTrackerError as exc:
        logger.warning("Issue fetch failed: %s", exc)
        st.error("Failed to load issues. Please check your API Token.")
        return

    try:
        logs = ctx.engine.logs_for_user(ctx.user_id)
        estimates = ctx.engine.load_estimates(ctx.user_id)
    except TimeTrackerError as exc:
        st.error(str(exc))
        return

    dash = build_dashboard_context(issues, cycles, logs, estimates, utc_now())
    render_active_timer(ctx)

    if not issues:
        st.info("No active issues found.")
        return

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Issues", dash.total_issues)
    c2.metric("Current cycle", dash.counts_by_bucket.get(CYCLE_CURRENT, 0))
    c3.metric("Tracked (h)", f"{dash.total_hours:.1f}")
    c4.metric("Estimated (h)", f"{dash.total_estimated:.1f}")

    tab_cycles, tab_estimates, tab_sessions = st.tabs(["By cycle", "Estimates", "Sessions"])
    with tab_cycles:
        _render_cycle_sections(ctx, dash)
    with tab_estimates:
        chart = time_vs_estimate_chart(dash.table)
        if chart is not None:
            st.altair_chart(chart, use_container_width=True)
        _render_estimates_editor(ctx, dash)
    with tab_sessions:
        sessions = sessions_table(logs, utc_now())
        if sessions.empty:
            st.info("No tracked sessions yet.")
        else:
            st.dataframe(
                sessions,
                hide_index=True,
                width="stretch",
                column_config={"hours": st.column_config.NumberColumn("Hours", format="%.2f")},
            )
