"""
Audit Logger

DESIGN DECISION: Every change to clients and projects is logged.
This provides:
1. Traceability of admin actions
2. Debugging capability when a store call fails
3. A history of exported invoices

The audit logger:
- Is async so it fits the flows' await chain
- Gracefully handles failures (a failed audit write never breaks a save)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder
from src.services.storage import RecordStoreInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog and the stdlib root logger for JSON output."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit table in the record store, when one is configured
    """

    def __init__(
        self,
        store: Optional[RecordStoreInterface] = None,
        table: Optional[str] = None,
    ):
        """
        Initialize audit logger.

        Args:
            store: Record store for persistence.
            table: Audit table name. If either is None, only logs locally.
        """
        self._store = store
        self._table = table
        self._logger = structlog.get_logger("audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the store if configured.

        Returns True if the store write succeeded (or no store is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._store is not None and self._table:
            try:
                await self._store.insert(self._table, event.to_record())
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_signed_in(self, email: str) -> None:
        await self.log(AuditEventBuilder.signed_in(email))

    async def log_sign_in_failed(self, email: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.sign_in_failed(email, error_message))

    async def log_signed_out(self, email: Optional[str]) -> None:
        await self.log(AuditEventBuilder.signed_out(email))

    async def log_client_saved(
        self,
        client_id: Any,
        name: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a client create or update."""
        await self.log(AuditEventBuilder.client_saved(
            client_id=client_id,
            name=name,
            created=created,
            correlation_id=correlation_id,
        ))

    async def log_client_deleted(
        self,
        client_id: Any,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.client_deleted(client_id, correlation_id))

    async def log_project_saved(
        self,
        project_id: Any,
        client_id: Any,
        name: str,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a project create or update."""
        await self.log(AuditEventBuilder.project_saved(
            project_id=project_id,
            client_id=client_id,
            name=name,
            created=created,
            correlation_id=correlation_id,
        ))

    async def log_project_deleted(
        self,
        project_id: Any,
        client_id: Any,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.project_deleted(
            project_id, client_id, correlation_id,
        ))

    async def log_invoice_exported(
        self,
        client_id: Any,
        filename: str,
        project_count: int,
        total: str,
    ) -> None:
        await self.log(AuditEventBuilder.invoice_exported(
            client_id=client_id,
            filename=filename,
            project_count=project_count,
            total=total,
        ))

    async def log_validation_failed(
        self,
        form: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a form rejected by validation."""
        await self.log(AuditEventBuilder.validation_failed(
            form=form,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_stale_response(
        self,
        page: str,
        request_seq: int,
        latest_seq: int,
    ) -> None:
        await self.log(AuditEventBuilder.stale_response_discarded(
            page, request_seq, latest_seq,
        ))

    async def log_store_error(
        self,
        operation: str,
        table: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed record store call."""
        await self.log(AuditEventBuilder.store_error(
            operation=operation,
            table=table,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving a project).
    Pass it through all subsequent operations.
    """
    return uuid4()
