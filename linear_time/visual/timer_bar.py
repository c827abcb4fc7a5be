"""Active timer panel: elapsed clock, estimate input, and stop control."""

from __future__ import annotations

import logging

import streamlit as st

from linear_time.core.errors import TimeTrackerError
from linear_time.features.session import SessionContext
from linear_time.timer.aggregation import elapsed_seconds, format_elapsed
from linear_time.timer.store import utc_now

logger = logging.getLogger(__name__)


@st.fragment(run_every=1)
def _elapsed_clock(ctx: SessionContext) -> None:
    # Display only; recomputed from wall clock, never written back
    st.markdown(f"### `{format_elapsed(elapsed_seconds(ctx.active_timer, utc_now()))}`")


def render_active_timer(ctx: SessionContext) -> None:
    timer = ctx.active_timer
    if timer is None:
        return

    with st.container(border=True):
        left, right = st.columns([3, 1])
        with left:
            st.caption(timer.issue_identifier)
            st.write(f"**{timer.issue_title}**")
            _elapsed_clock(ctx)
        with right:
            estimate = st.text_input(
                "Estimate",
                value=timer.estimate or "",
                placeholder="25m",
                key=f"estimate_{timer.id}",
            )
            if estimate != (timer.estimate or ""):
                try:
                    ctx.engine.update_estimate(timer.id, estimate)
                except TimeTrackerError as exc:
                    st.error(str(exc))
            if st.button("Stop", type="primary", key=f"stop_{timer.id}"):
                try:
                    ctx.engine.stop_timer(timer.id)
                except TimeTrackerError as exc:
                    st.error(str(exc))
                else:
                    st.rerun()
