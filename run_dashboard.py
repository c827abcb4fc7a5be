"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``linear_time/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
import os
from importlib import import_module
from pathlib import Path

import streamlit as st

from linear_time.app import main

st.set_page_config(page_title="Linear Time", layout="wide")
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"), format="%(asctime)s %(name)s %(levelname)s %(message)s")


def _auto_init_issue_service():
    """Initialize the Linear service from the saved token or Streamlit secrets."""
    if "issue_service" in st.session_state:
        return

    from linear_time.core.linear_client import LinearAPI
    from linear_time.core.service import IssueService
    from linear_time.core.settings import resolve_token

    linear_secrets = st.secrets.get("linear", {})
    token = resolve_token() or linear_secrets.get("LINEAR_API_KEY") or st.secrets.get("LINEAR_API_KEY")
    if token:
        st.session_state["issue_service"] = IssueService(LinearAPI(token))


_auto_init_issue_service()

PAGES_DIR = Path(__file__).parent / "linear_time" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"linear_time.pages.{py.stem}"
    try:
        import_module(mod_name)
    except ImportError as e:  # pragma: no cover
        logging.getLogger(__name__).error("Failed importing page %s: %s", mod_name, e)

if __name__ == "__main__":
    main()
