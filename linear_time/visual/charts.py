"""Chart builders (Altair) for tracked vs. estimated time."""

from __future__ import annotations

import altair as alt
import pandas as pd


def time_vs_estimate_chart(table: pd.DataFrame, limit: int = 20):
    """Grouped bars of tracked and estimated hours per issue.

    Returns ``None`` when no issue has tracked time or an estimate.
    """
    if table.empty or "hours_spent" not in table.columns:
        return None
    work = table[["identifier", "title", "hours_spent", "estimate_hours"]].copy()
    work["estimate_hours"] = pd.to_numeric(work["estimate_hours"], errors="coerce")
    work = work[(work["hours_spent"] > 0) | work["estimate_hours"].notna()]
    if work.empty:
        return None
    work = work.sort_values(by="hours_spent", ascending=False).head(limit)
    long = work.melt(
        id_vars=["identifier", "title"],
        value_vars=["hours_spent", "estimate_hours"],
        var_name="kind",
        value_name="hours",
    ).dropna(subset=["hours"])
    long["kind"] = long["kind"].map({"hours_spent": "Tracked", "estimate_hours": "Estimate"})

    return (
        alt.Chart(long)
        .mark_bar()
        .encode(
            y=alt.Y("identifier:N", sort=list(work["identifier"]), title=None),
            x=alt.X("hours:Q", title="Hours"),
            yOffset=alt.YOffset("kind:N"),
            color=alt.Color(
                "kind:N",
                scale=alt.Scale(domain=["Tracked", "Estimate"], range=["#6366f1", "#a1a1aa"]),
                title=None,
            ),
            tooltip=[
                alt.Tooltip("identifier:N", title="Issue"),
                alt.Tooltip("title:N", title="Title"),
                alt.Tooltip("kind:N", title="Kind"),
                alt.Tooltip("hours:Q", title="Hours", format=".2f"),
            ],
        )
        .properties(height=alt.Step(14))
    )
