"""
Financial Aggregator

Derives how much of each project's budget has been received and how much
is still pending, purely from its declared payment status.

DESIGN DECISION: Nothing here is stored. Received/pending are recomputed
from cost, advance and payment status on every render, so changing a
project's status can never leave a stale total behind.

GUARANTEES:
- pending is never negative
- received never exceeds cost
- missing or unreadable amounts count as 0, never raise
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence, Union

from src.models.studio import (
    Client,
    ClientStats,
    FinancialSummary,
    PaymentStatus,
    Project,
    ProjectAmounts,
    RevenueBar,
    field_value,
)

ProjectLike = Union[Project, Mapping[str, Any]]

ZERO = Decimal("0")

# Bars narrower than this are unreadable, so every client gets at least a sliver.
MIN_BAR_WIDTH_PCT = 8.0


def _amount(value: Any) -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return ZERO
    # NaN and Infinity are legal in a numeric column but poison every comparison.
    return result if result.is_finite() else ZERO


def amounts(project: ProjectLike) -> ProjectAmounts:
    """
    Compute cost, advance, received and pending for one project.

    - paid: the whole cost is received
    - partial: the advance is received, capped at the cost
    - unpaid or missing status: nothing is received
    """
    cost = _amount(field_value(project, "cost"))
    advance = _amount(field_value(project, "advance"))
    status = field_value(project, "payment_status")

    if status == PaymentStatus.PAID:
        received = cost
    elif status == PaymentStatus.PARTIAL:
        received = min(advance, cost)
    else:
        received = ZERO

    pending = max(cost - received, ZERO)
    return ProjectAmounts(
        cost=cost,
        advance=advance,
        received=received,
        pending=pending,
    )


def aggregate(projects: Iterable[ProjectLike]) -> FinancialSummary:
    """Sum amounts() across projects. Empty input gives all zeros."""
    total = received = pending = ZERO
    for project in projects:
        figures = amounts(project)
        total += figures.cost
        received += figures.received
        pending += figures.pending
    return FinancialSummary(total=total, received=received, pending=pending)


def client_stats(projects: Iterable[ProjectLike]) -> dict[Any, ClientStats]:
    """
    Group project figures by owning client.

    Clients with no projects are absent from the result; callers
    should fall back to an empty ClientStats.
    """
    grouped: dict[Any, list[ProjectLike]] = {}
    for project in projects:
        grouped.setdefault(field_value(project, "client_id"), []).append(project)

    stats = {}
    for client_id, client_projects in grouped.items():
        summary = aggregate(client_projects)
        stats[client_id] = ClientStats(
            total=summary.total,
            received=summary.received,
            pending=summary.pending,
            projects=len(client_projects),
        )
    return stats


def revenue_bars(
    clients: Sequence[Client],
    stats: Mapping[Any, ClientStats],
) -> list[RevenueBar]:
    """
    Build the revenue-by-client chart rows.

    Bar width is relative to the largest client total among `clients`;
    the pending segment is the share of that client's own total still unpaid.
    """
    empty = ClientStats()
    max_total = max(
        (stats.get(c.id, empty).total for c in clients),
        default=ZERO,
    )
    if max_total <= 0:
        max_total = Decimal("1")

    bars = []
    for client in clients:
        s = stats.get(client.id, empty)
        total_width = max(float(s.total / max_total * 100), MIN_BAR_WIDTH_PCT)
        pending_width = float(s.pending / s.total * 100) if s.total > 0 else 0.0
        bars.append(RevenueBar(
            client=client,
            stats=s,
            total_width_pct=min(total_width, 100.0),
            pending_width_pct=min(pending_width, 100.0),
        ))
    return bars
