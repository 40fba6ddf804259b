"""
Filter/Search Engine

Produces the subsets of clients and projects the dashboard shows after the
admin types a search or picks a status filter.

DESIGN DECISION: Filtering is done in Python on the already-fetched lists.
A studio has tens of clients, not millions, and filtering locally keeps the
search box responsive without a store round-trip per keystroke.

Every function here preserves the input's relative order and never raises
for missing or malformed fields.
"""

from datetime import date, datetime
from typing import Any, Optional, Sequence, TypeVar

from src.models.studio import ALL, PaymentStatus, field_value

T = TypeVar("T")

CLIENT_SEARCH_FIELDS = ("name", "email", "phone")


def filter_clients(clients: Sequence[T], query: str) -> Sequence[T]:
    """
    Case-insensitive substring search over name, email and phone.

    An empty or whitespace-only query returns `clients` unchanged.
    """
    q = (query or "").strip().lower()
    if not q:
        return clients

    return [
        client for client in clients
        if any(
            q in str(field_value(client, name, "")).lower()
            for name in CLIENT_SEARCH_FIELDS
        )
    ]


def _status_value(value: Any) -> Any:
    return getattr(value, "value", value)


def filter_projects(
    projects: Sequence[T],
    work_filter: str = ALL,
    payment_filter: str = ALL,
) -> list[T]:
    """Keep projects matching both the work-status and payment-status filters."""
    work_filter = _status_value(work_filter)
    payment_filter = _status_value(payment_filter)

    result = []
    for project in projects:
        work_ok = (
            work_filter == ALL
            or _status_value(field_value(project, "work_status")) == work_filter
        )
        pay_ok = (
            payment_filter == ALL
            or _status_value(field_value(project, "payment_status")) == payment_filter
        )
        if work_ok and pay_ok:
            result.append(project)
    return result


def parse_deadline(value: Any) -> Optional[date]:
    """
    Parse a deadline into a calendar date.

    Accepts date/datetime objects and ISO-8601 strings (a full timestamp
    keeps only its date). Returns None for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def upcoming_deadlines(
    projects: Sequence[T],
    now: date,
    limit: int = 3,
) -> list[T]:
    """
    The next `limit` unpaid deadlines on or after `now`, soonest first.

    Paid projects are skipped even when their deadline is the soonest,
    and projects whose deadline cannot be parsed are left out.
    """
    today = now.date() if isinstance(now, datetime) else now

    dated = []
    for project in projects:
        if _status_value(field_value(project, "payment_status")) == PaymentStatus.PAID.value:
            continue
        deadline = parse_deadline(field_value(project, "deadline"))
        if deadline is None or deadline < today:
            continue
        dated.append((deadline, project))

    dated.sort(key=lambda pair: pair[0])
    return [project for _, project in dated[:limit]]


def is_overdue(project: Any, today: date) -> bool:
    """An unpaid or partly paid project whose deadline is before `today`."""
    today = today.date() if isinstance(today, datetime) else today
    if _status_value(field_value(project, "payment_status")) == PaymentStatus.PAID.value:
        return False
    deadline = parse_deadline(field_value(project, "deadline"))
    return deadline is not None and deadline < today


def format_date(value: Any) -> str:
    """Render a deadline as YYYY-MM-DD, '-' when empty, or as-is when unparseable."""
    if value is None or value == "":
        return "-"
    parsed = parse_deadline(value)
    if parsed is None:
        return str(value)
    return parsed.isoformat()
