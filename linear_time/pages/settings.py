"""Settings page: store the Linear API token and initialize IssueService."""

from __future__ import annotations

import streamlit as st

from linear_time.app import register_page
from linear_time.core.config import LINEAR_CACHE_TTL_SECONDS
from linear_time.core.errors import TimeTrackerError
from linear_time.core.linear_client import LinearAPI
from linear_time.core.service import IssueService
from linear_time.core.settings import resolve_token, save_token


def connect_issue_service(token: str | None = None) -> IssueService:
    api = LinearAPI(token)
    service = IssueService(api)
    st.session_state["issue_service"] = service
    return service


@register_page("Settings")
def settings_page(ctx):
    st.title("Linear Settings")
    st.caption("Generate a token in your Linear Settings > API.")

    linear_secrets = st.secrets.get("linear", {})
    current = resolve_token() or linear_secrets.get("LINEAR_API_KEY") or ""

    token = st.text_input(
        "Personal Access Token",
        type="password",
        value=current,
        placeholder="lin_api_...",
    )
    existing = st.session_state.get("issue_service")
    current_ttl = int(existing.api.cache_ttl) if existing is not None else int(LINEAR_CACHE_TTL_SECONDS)
    ttl = st.number_input("Query cache TTL (seconds)", min_value=0, max_value=3600, value=current_ttl)
    save_btn = st.button("Save Token", type="primary")

    if save_btn:
        if not token.strip():
            st.error("A token is required.")
            return
        path = save_token(token)
        service = connect_issue_service(token.strip())
        service.api.cache_ttl = ttl
        try:
            viewer = service.api.viewer()
        except TimeTrackerError as exc:
            st.error(f"Token saved to {path}, but Linear rejected it: {exc}")
            return
        if viewer.get("id"):
            ctx.linear_user_id = viewer["id"]
        st.success(f"Token saved. Connected to Linear as {viewer.get('name') or 'unknown user'}.")

    if "issue_service" in st.session_state:
        st.info("IssueService ready.")
