"""My Issues feature module: cycle-grouped issues with tracked and estimated time."""

from linear_time.features.my_issues.context import DashboardContext, build_dashboard_context, sessions_table

__all__ = [
    "DashboardContext",
    "build_dashboard_context",
    "sessions_table",
]
