"""Workflow state helpers shared by pages and context builders."""

from __future__ import annotations

from .config import DONE_STATE_NAMES, EXCLUDED_STATE_NAME


def clean_state_name(value: str | None) -> str:
    """Sanitize a workflow state name, converting null-like values to "Unknown"."""
    if not value:
        return "Unknown"
    text = str(value).strip()
    if not text or text.lower() in {"nan", "none", "null"}:
        return "Unknown"
    return text


def is_done_state(value: str | None) -> bool:
    """True for states that render with the "done" marker.

    >>> is_done_state("Done")
    True
    >>> is_done_state("In Progress")
    False
    """
    return clean_state_name(value).lower() in DONE_STATE_NAMES


def is_excluded_state(value: str | None) -> bool:
    return clean_state_name(value).lower() == EXCLUDED_STATE_NAME.lower()
