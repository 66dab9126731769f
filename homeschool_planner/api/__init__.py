"""API routers."""

from homeschool_planner.api import calendar, children, sessions, topics

__all__ = [
    "children",
    "sessions",
    "calendar",
    "topics",
]
