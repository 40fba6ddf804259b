"""
Audit Models for the Studio Dashboard

Every change the admin makes to clients and projects is recorded.
This provides:
1. Traceability of who changed what and when
2. Debugging information when a store call fails
3. A history of exported invoices

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    SIGNED_IN = "signed_in"
    SIGN_IN_FAILED = "sign_in_failed"
    SIGNED_OUT = "signed_out"

    # Clients
    CLIENT_CREATED = "client_created"
    CLIENT_UPDATED = "client_updated"
    CLIENT_DELETED = "client_deleted"

    # Projects
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_DELETED = "project_deleted"

    # Export
    INVOICE_EXPORTED = "invoice_exported"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Fetching
    STALE_RESPONSE_DISCARDED = "stale_response_discarded"

    # System events
    STORE_ERROR = "store_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'client', 'project', 'session')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Primary key of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one save from click to reload)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_record(self) -> dict:
        """
        Convert to a row for the audit table in the record store.

        Details are JSON-encoded so the table needs no JSON column type.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details_json": json.dumps(self.details, default=str) if self.details else None,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.client_saved(client_id, name, created=True)
        event = AuditEventBuilder.store_error("select", "projects", message)
    """

    @staticmethod
    def signed_in(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            entity_type="session",
            description=f"Admin signed in: {email}",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def sign_in_failed(email: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description=f"Sign-in failed for {email}",
            details={"email": email},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def signed_out(email: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            entity_type="session",
            description="Admin signed out",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def client_saved(
        client_id: Any,
        name: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.CLIENT_CREATED if created
                else AuditEventType.CLIENT_UPDATED
            ),
            entity_type="client",
            entity_id=str(client_id),
            correlation_id=correlation_id,
            description=f"Client {'created' if created else 'updated'}: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def client_deleted(
        client_id: Any,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="client",
            entity_id=str(client_id),
            correlation_id=correlation_id,
            description="Client deleted together with their projects",
            is_user_action=True,
        )

    @staticmethod
    def project_saved(
        project_id: Any,
        client_id: Any,
        name: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.PROJECT_CREATED if created
                else AuditEventType.PROJECT_UPDATED
            ),
            entity_type="project",
            entity_id=str(project_id) if project_id is not None else None,
            correlation_id=correlation_id,
            description=f"Project {'created' if created else 'updated'}: {name}",
            details={"name": name, "client_id": str(client_id)},
            is_user_action=True,
        )

    @staticmethod
    def project_deleted(
        project_id: Any,
        client_id: Any,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_DELETED,
            entity_type="project",
            entity_id=str(project_id),
            correlation_id=correlation_id,
            description="Project deleted",
            details={"client_id": str(client_id)},
            is_user_action=True,
        )

    @staticmethod
    def invoice_exported(
        client_id: Any,
        filename: str,
        project_count: int,
        total: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVOICE_EXPORTED,
            entity_type="client",
            entity_id=str(client_id),
            description=f"Invoice exported: {filename}",
            details={
                "filename": filename,
                "project_count": project_count,
                "total": total,
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        form: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=form,
            correlation_id=correlation_id,
            description=f"{form.capitalize()} form rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def stale_response_discarded(
        page: str,
        request_seq: int,
        latest_seq: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_RESPONSE_DISCARDED,
            severity=AuditSeverity.DEBUG,
            description=f"Discarded out-of-order {page} response",
            details={"request_seq": request_seq, "latest_seq": latest_seq},
        )

    @staticmethod
    def store_error(
        operation: str,
        table: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type=table,
            correlation_id=correlation_id,
            description=f"Record store {operation} on {table} failed",
            error_message=error_message,
            details={"operation": operation, "table": table},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
