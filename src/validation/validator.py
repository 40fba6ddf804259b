"""
Form Validation

Checks client and project form input before anything is sent to the
record store.

DESIGN DECISION: Validation runs entirely client-side and is all-or-nothing.
If any error-level issue is found, the flow refuses to call the store, so a
half-valid form can never produce a partial save.

Warnings never block a save; the UI shows them next to the form.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from src.models.studio import (
    ClientForm,
    PaymentStatus,
    ProjectForm,
    ValidationIssue,
    ValidationResult,
    WorkStatus,
)
from src.queries.filters import parse_deadline


class FormValidator:
    """Validates ClientForm and ProjectForm input."""

    def validate_client(self, form: ClientForm) -> ValidationResult:
        issues = []

        if not form.name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Client name is required",
                severity="error",
            ))

        email = form.email.strip()
        if email and "@" not in email:
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message=f"'{email}' does not look like an email address",
                severity="warning",
            ))

        logo = form.logo_path.strip()
        if logo and not logo.startswith(("http://", "https://")):
            issues.append(ValidationIssue(
                field="logo_path",
                issue_type="invalid_format",
                message="Logo should be a full http(s) URL",
                severity="warning",
            ))

        return ValidationResult(form="client", issues=issues)

    def _parse_amount(
        self,
        field: str,
        label: str,
        raw: str,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        """Parse a money field, recording an issue if it is unusable."""
        if not raw or not raw.strip():
            return Decimal("0")
        try:
            value = Decimal(raw.strip())
        except InvalidOperation:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{label} must be a number",
                severity="error",
            ))
            return None

        if not value.is_finite():
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{label} must be a finite number",
                severity="error",
            ))
            return None

        if value < 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="out_of_range",
                message=f"{label} cannot be negative",
                severity="error",
            ))
            return None
        return value

    def validate_project(
        self,
        form: ProjectForm,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate a project form.

        Errors:
        - missing name
        - non-numeric or negative budget/advance
        - advance larger than the budget
        - unparseable deadline
        - unknown work or payment status

        Warnings:
        - partial payment with no advance recorded
        - unpaid project whose deadline has already passed
        """
        issues = []
        today = today or date.today()

        if not form.name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Project name is required",
                severity="error",
            ))

        cost = self._parse_amount("cost", "Budget", form.cost, issues)
        advance = self._parse_amount("advance", "Advance", form.advance, issues)

        if cost is not None and advance is not None and advance > cost:
            issues.append(ValidationIssue(
                field="advance",
                issue_type="out_of_range",
                message=f"Advance ({advance}) cannot exceed the budget ({cost})",
                severity="error",
            ))

        deadline = None
        if form.deadline.strip():
            deadline = parse_deadline(form.deadline)
            if deadline is None:
                issues.append(ValidationIssue(
                    field="deadline",
                    issue_type="invalid_format",
                    message=f"Deadline '{form.deadline}' is not a valid date (use YYYY-MM-DD)",
                    severity="error",
                ))

        work_values = {s.value for s in WorkStatus}
        if form.work_status and form.work_status not in work_values:
            issues.append(ValidationIssue(
                field="work_status",
                issue_type="invalid_value",
                message=f"Unknown work status: {form.work_status}",
                severity="error",
            ))

        payment_values = {s.value for s in PaymentStatus}
        if form.payment_status and form.payment_status not in payment_values:
            issues.append(ValidationIssue(
                field="payment_status",
                issue_type="invalid_value",
                message=f"Unknown payment status: {form.payment_status}",
                severity="error",
            ))

        if form.payment_status == PaymentStatus.PARTIAL.value and advance == 0:
            issues.append(ValidationIssue(
                field="advance",
                issue_type="suspicious_value",
                message="Payment is marked partial but no advance is recorded",
                severity="warning",
            ))

        if (
            deadline is not None
            and deadline < today
            and form.payment_status != PaymentStatus.PAID.value
        ):
            issues.append(ValidationIssue(
                field="deadline",
                issue_type="past_date",
                message=f"Deadline {deadline.isoformat()} has already passed",
                severity="warning",
            ))

        return ValidationResult(form="project", issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summarise a result for display above the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        if errors:
            lines.append("Please fix the following before saving:")
            for issue in errors:
                lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
