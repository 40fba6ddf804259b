"""
Core Data Models for the Studio Dashboard

These models define the schemas for clients and projects as they come back
from the record store, the figures derived from them, and the raw form input
typed into the dashboard.

DESIGN DECISION: Money is held as Decimal, never float.
Budgets and advances are summed across many projects and rendered on an
invoice, so binary rounding drift is not acceptable.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class WorkStatus(str, Enum):
    """Lifecycle stage of creative production for a project."""
    NOT_STARTED = "not_started"
    EDITING = "editing"
    REVIEW = "review"
    DELIVERED = "delivered"
    ARCHIVED = "archived"


class PaymentStatus(str, Enum):
    """
    Billing state of a project.

    Drives the received/pending computation:
    - PAID: the whole budget counts as received
    - PARTIAL: only the advance counts as received
    - UNPAID: nothing is received yet
    """
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


# Sentinel used by the dashboard filters to mean "no restriction".
ALL = "all"


def field_value(record: Any, name: str, default: Any = None) -> Any:
    """
    Read a field from a parsed model or a raw row mapping.

    The overview page fetches a narrow column projection of `projects`
    that is never parsed into a full Project, so derivations accept both.
    """
    if isinstance(record, dict):
        value = record.get(name, default)
    else:
        value = getattr(record, name, default)
    return default if value is None else value


# =============================================================================
# STORED ENTITIES
# =============================================================================

class Client(BaseModel):
    """
    A studio client as stored in the `clients` table.

    The dashboard only ever holds a transient copy; the record store owns it.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: Optional[int] = Field(
        default=None,
        description="Primary key assigned by the record store"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Client name (required)"
    )
    email: Optional[str] = None
    phone: Optional[str] = None
    logo_path: Optional[str] = Field(
        default=None,
        description="URL of the client's logo"
    )
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class Project(BaseModel):
    """
    A project owned by a client, as stored in the `projects` table.

    Cost and advance default to 0 and may never be negative.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: Optional[int] = None
    client_id: int = Field(
        ...,
        description="Owning client"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Project name (required)"
    )
    type: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Kind of work, e.g. wedding film, reel, podcast edit"
    )
    deadline: Optional[date] = None
    cost: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Agreed project budget"
    )
    advance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Advance paid by the client"
    )
    work_status: WorkStatus = WorkStatus.NOT_STARTED
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    file_links: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator('cost', 'advance', mode='before')
    @classmethod
    def null_amount_is_zero(cls, v: Any) -> Any:
        """The store returns NULL for amounts that were never filled in."""
        if v is None or v == "":
            return Decimal("0")
        return v


# =============================================================================
# DERIVED FIGURES
# =============================================================================

class ProjectAmounts(BaseModel):
    """Money figures for a single project."""
    model_config = ConfigDict(frozen=True)

    cost: Decimal
    advance: Decimal
    received: Decimal
    pending: Decimal


class FinancialSummary(BaseModel):
    """Summed figures across a set of projects."""
    model_config = ConfigDict(frozen=True)

    total: Decimal = Decimal("0")
    received: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")


class ClientStats(FinancialSummary):
    """Summed figures for one client, plus how many projects they have."""

    projects: int = 0


class RevenueBar(BaseModel):
    """One row of the revenue-by-client chart on the overview page."""
    model_config = ConfigDict(frozen=True)

    client: Client
    stats: ClientStats
    total_width_pct: float = Field(ge=0.0, le=100.0)
    pending_width_pct: float = Field(ge=0.0, le=100.0)


class Session(BaseModel):
    """The slice of an authentication session the dashboard cares about."""
    model_config = ConfigDict(frozen=True)

    access_token: str
    user_email: Optional[str] = None


# =============================================================================
# FORM INPUT
# =============================================================================

def _blank_to_none(value: str) -> Optional[str]:
    return value if value else None


def _to_amount(value: str) -> Decimal:
    if not value or not value.strip():
        return Decimal("0")
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")


class ClientForm(BaseModel):
    """
    Raw client details as typed into the edit form.

    Everything is a string here; `to_payload()` produces what the
    record store expects.
    """

    id: Optional[int] = None
    name: str = ""
    email: str = ""
    phone: str = ""
    logo_path: str = ""
    notes: str = ""

    @classmethod
    def from_client(cls, client: Client) -> "ClientForm":
        """Pre-fill the form from a stored client."""
        return cls(
            id=client.id,
            name=client.name or "",
            email=client.email or "",
            phone=client.phone or "",
            logo_path=client.logo_path or "",
            notes=client.notes or "",
        )

    def to_payload(self) -> dict:
        return {
            "name": self.name.strip(),
            "email": _blank_to_none(self.email),
            "phone": _blank_to_none(self.phone),
            "logo_path": _blank_to_none(self.logo_path),
            "notes": _blank_to_none(self.notes),
        }


class ProjectForm(BaseModel):
    """
    Raw project details as typed into the create/edit form.

    A form with no `id` creates a new project; otherwise it edits that one.
    """

    id: Optional[int] = None
    name: str = ""
    type: str = ""
    deadline: str = ""
    cost: str = ""
    advance: str = ""
    work_status: str = WorkStatus.NOT_STARTED.value
    payment_status: str = PaymentStatus.UNPAID.value
    file_links: str = ""
    notes: str = ""

    @property
    def is_new(self) -> bool:
        return self.id is None

    @classmethod
    def from_project(cls, project: Project) -> "ProjectForm":
        """Pre-fill the form to edit an existing project."""
        return cls(
            id=project.id,
            name=project.name or "",
            type=project.type or "",
            deadline=project.deadline.isoformat() if project.deadline else "",
            cost=str(project.cost) if project.cost is not None else "",
            advance=str(project.advance) if project.advance is not None else "",
            work_status=project.work_status.value,
            payment_status=project.payment_status.value,
            file_links=project.file_links or "",
            notes=project.notes or "",
        )

    def to_payload(self) -> dict:
        """
        Convert to a store payload.

        Blank amounts become 0 and blank statuses fall back to
        not_started / unpaid. Raises ValueError for non-numeric amounts;
        run the form through FormValidator first.
        """
        return {
            "name": self.name.strip(),
            "type": _blank_to_none(self.type),
            "deadline": _blank_to_none(self.deadline.strip()),
            "cost": str(_to_amount(self.cost)),
            "work_status": self.work_status or WorkStatus.NOT_STARTED.value,
            "payment_status": self.payment_status or PaymentStatus.UNPAID.value,
            "advance": str(_to_amount(self.advance)),
            "file_links": _blank_to_none(self.file_links),
            "notes": _blank_to_none(self.notes),
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in a form."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one form submission.

    Only error-level issues block the submission; warnings are shown
    next to the form but the save goes ahead.
    """

    form: str = Field(
        ...,
        description="Which form was validated ('client' or 'project')"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
