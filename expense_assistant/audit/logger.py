"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of ledger mutations
2. Debugging capability
3. A record of access grants and denials
4. Visibility into dropped and rejected inputs

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the bot if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_assistant.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_assistant.services.storage import AuditStorageInterface


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
    2. An audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_assistant.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_access_granted(self, user_id: str, correlation_id: UUID) -> None:
        """Log a successful access code attempt."""
        await self.log(AuditEventBuilder.access_granted(user_id, correlation_id))

    async def log_access_denied(self, user_id: str, correlation_id: UUID) -> None:
        """Log an event blocked by the access gate."""
        await self.log(AuditEventBuilder.access_denied(user_id, correlation_id))

    async def log_logged_out(self, user_id: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.logged_out(user_id, correlation_id))

    async def log_expense_logged(
        self,
        user_id: str,
        amount: str,
        item: str,
        day: str,
        correlation_id: UUID,
    ) -> None:
        """Log an appended expense entry."""
        event = AuditEventBuilder.expense_logged(
            user_id=user_id,
            amount=amount,
            item=item,
            day=day,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_limit_set(self, user_id: str, amount: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.limit_set(user_id, amount, correlation_id))

    async def log_limit_alert(
        self,
        user_id: str,
        alert: str,
        today_total: str,
        daily_limit: str,
        correlation_id: UUID,
    ) -> None:
        """Log a daily limit threshold crossing."""
        event = AuditEventBuilder.limit_alert(
            user_id=user_id,
            alert=alert,
            today_total=today_total,
            daily_limit=daily_limit,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_day_cleared(
        self,
        user_id: str,
        day: str,
        removed: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.day_cleared(user_id, day, removed, correlation_id))

    async def log_bill_capture_started(self, user_id: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.bill_capture_started(user_id, correlation_id))

    async def log_bill_photo_captured(
        self,
        user_id: str,
        file_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.bill_photo_captured(user_id, file_id, correlation_id))

    async def log_bill_saved(
        self,
        user_id: str,
        label: str,
        file_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log a bill appended to the vault."""
        event = AuditEventBuilder.bill_saved(
            user_id=user_id,
            label=label,
            file_id=file_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_input_rejected(
        self,
        user_id: str,
        command: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a malformed command argument."""
        event = AuditEventBuilder.input_rejected(
            user_id=user_id,
            command=command,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_event_dropped(
        self,
        reason: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an event the core ignored without replying."""
        event = AuditEventBuilder.event_dropped(
            reason=reason,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_report_delivered(self, recipient_id: str, cadence: str) -> None:
        await self.log(AuditEventBuilder.report_delivered(recipient_id, cadence))

    async def log_report_delivery_failed(
        self,
        recipient_id: str,
        cadence: str,
        error_message: str,
    ) -> None:
        await self.log(
            AuditEventBuilder.report_delivery_failed(recipient_id, cadence, error_message)
        )

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store read or write."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this when an inbound event arrives.
    Pass it through all subsequent operations.
    """
    return uuid4()
