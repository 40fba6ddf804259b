"""
Data Models Package

This package contains all Pydantic models used by the Studio Dashboard.
Records fetched from the store are parsed into these before use.
"""

from src.models.studio import (
    ALL,
    Client,
    ClientForm,
    ClientStats,
    FinancialSummary,
    PaymentStatus,
    Project,
    ProjectAmounts,
    ProjectForm,
    RevenueBar,
    Session,
    ValidationIssue,
    ValidationResult,
    WorkStatus,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Studio models
    "ALL",
    "Client",
    "ClientForm",
    "ClientStats",
    "FinancialSummary",
    "PaymentStatus",
    "Project",
    "ProjectAmounts",
    "ProjectForm",
    "RevenueBar",
    "Session",
    "ValidationIssue",
    "ValidationResult",
    "WorkStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
