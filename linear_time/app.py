"""Application entry point: page registry, sign-in gate, and router."""

from __future__ import annotations

import logging

import streamlit as st

from linear_time.core.auth import DomainGate, identity_from_streamlit
from linear_time.core.config import AUTH_PROVIDER, AppSettings, StartPolicy
from linear_time.core.errors import AuthDomainRejected, StoreUnavailable
from linear_time.features.session import SessionContext
from linear_time.timer.engine import TimerEngine
from linear_time.timer.sqlite_store import SQLiteTimerStore

logger = logging.getLogger(__name__)

PAGES = {}


def register_page(label):
    def decorator(func):
        PAGES[label] = func
        return func

    return decorator


def load_settings() -> AppSettings:
    """Environment settings, overridden by an optional ``[app]`` secrets section."""
    settings = AppSettings.from_env()
    app_secrets = st.secrets.get("app", {})
    if app_secrets.get("ALLOWED_EMAIL_DOMAIN"):
        settings.allowed_email_domain = app_secrets["ALLOWED_EMAIL_DOMAIN"]
    if app_secrets.get("START_POLICY"):
        settings.start_policy = StartPolicy.parse(app_secrets["START_POLICY"])
    return settings


@st.cache_resource
def get_engine(db_path: str, policy_value: str) -> TimerEngine:
    store = SQLiteTimerStore(db_path)
    return TimerEngine(store, StartPolicy.parse(policy_value))


def render_login(settings: AppSettings) -> None:
    st.title("Linear Time Tracking")
    st.write("Sign in to track time on your Linear issues.")
    if settings.allowed_email_domain:
        st.caption(f"(Restricted to {settings.allowed_email_domain})")
    if st.button("Sign in with Google", type="primary"):
        st.login(AUTH_PROVIDER)


def require_session(settings: AppSettings) -> SessionContext | None:
    """Return the signed-in session context, or render the login screen."""
    notice = st.session_state.pop("auth_notice", None)
    if notice:
        st.error(notice)

    gate = DomainGate(settings.allowed_email_domain)

    def _sign_out() -> None:
        stale = st.session_state.pop("session_context", None)
        if stale is not None:
            stale.close()
        st.session_state["auth_notice"] = f"Access restricted to {settings.allowed_email_domain} emails."
        st.logout()

    try:
        state = gate.on_auth_state_changed(identity_from_streamlit(st.user), _sign_out)
    except AuthDomainRejected as exc:
        st.session_state.pop("auth_notice", None)
        st.error(str(exc))
        render_login(settings)
        return None

    if state.user is None:
        ctx = st.session_state.pop("session_context", None)
        if ctx is not None:
            ctx.close()
        render_login(settings)
        return None

    ctx = st.session_state.get("session_context")
    if ctx is None or ctx.identity.uid != state.user.uid:
        if ctx is not None:
            ctx.close()
        try:
            engine = get_engine(str(settings.db_path), settings.start_policy.value)
        except StoreUnavailable as exc:
            st.error(f"Timer store unavailable: {exc}")
            return None
        ctx = SessionContext(identity=state.user, engine=engine)
        st.session_state["session_context"] = ctx
    try:
        ctx.watch()
    except StoreUnavailable as exc:
        st.error(f"Timer store unavailable: {exc}")
        return None
    return ctx


def main():
    settings = load_settings()
    ctx = require_session(settings)
    if ctx is None:
        return

    st.sidebar.title("Linear Time")
    st.sidebar.caption(ctx.identity.email or ctx.identity.uid)
    if st.sidebar.button("Sign out"):
        ctx.close()
        st.session_state.pop("session_context", None)
        st.logout()
        return

    pages = list(PAGES.keys())
    if not pages:
        st.write("No pages registered yet.")
        return
    preferred_order = [
        "My Issues",  # cycle-grouped issues + timers
        "Settings",  # Linear token
    ]
    ordered = [name for name in preferred_order if name in pages]
    trailing = sorted(name for name in pages if name not in preferred_order)
    pages = ordered + trailing

    # Without an issue service, default to the settings page
    if "Settings" in pages and "issue_service" not in st.session_state:
        default = pages.index("Settings")
    else:
        default = 0
    page = st.sidebar.selectbox("Page", pages, index=default)
    PAGES[page](ctx)


if __name__ == "__main__":
    main()
