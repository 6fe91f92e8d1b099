"""
Audit Logger

DESIGN DECISION: Every change to a user's ledger and every failed call to
an external service is logged. This provides:
1. Traceability of who added or removed what
2. Debugging capability when Firebase or Sheets misbehave
3. Material for a future activity history

The audit logger:
- Always writes a structured local log line
- Optionally appends the event to the document store
- Gracefully handles failures (doesn't break the main flow if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from cash_manager.models.audit import AuditEvent, AuditEventBuilder
from cash_manager.services.storage import DocumentStoreInterface


# Configure structlog for local logging
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


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The document store's audit collection (when a store is given)
    """

    def __init__(
        self,
        storage: Optional[DocumentStoreInterface] = None,
        collection: str = "audit_events",
    ):
        """
        Initialize audit logger.

        Args:
            storage: Document store for persistence.
                    If None, only logs locally.
            collection: Collection that receives persisted events.
        """
        self._storage = storage
        self._collection = collection
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
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

        if self._storage:
            try:
                await self._storage.set_document(
                    self._collection,
                    str(event.event_id),
                    event.to_document(),
                )
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

    async def log_validation_failed(
        self,
        subject: str,
        issues: list[dict],
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected form."""
        await self.log(AuditEventBuilder.validation_failed(
            subject=subject,
            issues=issues,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed call to the identity provider or document store."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            operation=operation,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unexpected error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., registration).
    Pass it through all subsequent operations.
    """
    return uuid4()
