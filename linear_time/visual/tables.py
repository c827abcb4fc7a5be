"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

import pandas as pd
import streamlit as st

ISSUE_TABLE_COLUMNS: tuple[str, ...] = (
    "Issue",
    "title",
    "state",
    "done",
    "hours_spent",
    "estimate_hours",
    "remaining_hours",
)


def add_issue_link(df: pd.DataFrame, key_col: str = "identifier", label: str = "Issue"):
    """Add a Linear link column from the issue ``url``; empty when Linear sent none."""
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    urls = out["url"] if "url" in out.columns else pd.Series([None] * len(out), index=out.index)
    out[label] = [url if isinstance(url, str) and url else None for url in urls]
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"issue/([^/]+)",
            help="Open in Linear",
            width="small",
        ),
        "done": st.column_config.CheckboxColumn("Done", width="small"),
        "hours_spent": st.column_config.NumberColumn("Tracked (h)", format="%.2f"),
        "estimate_hours": st.column_config.NumberColumn("Estimate (h)", format="%.2f"),
        "remaining_hours": st.column_config.NumberColumn("Remaining (h)", format="%.2f"),
    }
    return out, cfg


def prepare_issue_table(df: pd.DataFrame) -> tuple[pd.DataFrame, list[str], dict[str, object]]:
    if df.empty:
        return df, [], {}
    table, cfg = add_issue_link(df)
    display_cols = [col for col in ISSUE_TABLE_COLUMNS if col in table.columns]
    return table, display_cols, cfg
