"""Filter and search package."""

from src.queries.filters import (
    filter_clients,
    filter_projects,
    format_date,
    is_overdue,
    parse_deadline,
    upcoming_deadlines,
)

__all__ = [
    "filter_clients",
    "filter_projects",
    "format_date",
    "is_overdue",
    "parse_deadline",
    "upcoming_deadlines",
]
