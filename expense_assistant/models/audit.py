"""
Audit Models for Expense Assistant

Every significant action in the system is logged for audit purposes.
This provides:
1. Complete traceability of ledger mutations
2. Debugging information when things go wrong
3. A record of who was granted or denied access
4. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clip(text: str, limit: int = 100) -> str:
    """Shorten user-typed text for a one-line description."""
    return text if len(text) <= limit else text[: limit - 1] + "…"


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every branch of the conversation core has its own event type.
    """
    # Access control
    ACCESS_GRANTED = "access_granted"
    ACCESS_DENIED = "access_denied"
    LOGGED_OUT = "logged_out"

    # Ledger mutations
    EXPENSE_LOGGED = "expense_logged"
    LIMIT_SET = "limit_set"
    LIMIT_ALERT = "limit_alert"
    DAY_CLEARED = "day_cleared"

    # Bill capture workflow
    BILL_CAPTURE_STARTED = "bill_capture_started"
    BILL_PHOTO_CAPTURED = "bill_photo_captured"
    BILL_SAVED = "bill_saved"

    # Input handling
    INPUT_REJECTED = "input_rejected"
    EVENT_DROPPED = "event_dropped"

    # Reports
    REPORT_DELIVERED = "report_delivered"
    REPORT_DELIVERY_FAILED = "report_delivery_failed"

    # System events
    STORAGE_ERROR = "storage_error"
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
        default_factory=_utcnow,
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

    # Context - whose ledger is this about?
    user_id: Optional[str] = Field(
        default=None,
        description="Chat identity the event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., everything done for one inbound message)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
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
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.access_granted(user_id, correlation_id)
        event = AuditEventBuilder.expense_logged(user_id, "250", "Coffee", "19/10/2026", correlation_id)
    """

    @staticmethod
    def access_granted(user_id: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_GRANTED,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Access code accepted",
            is_user_action=True,
        )

    @staticmethod
    def access_denied(user_id: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Event from unauthorized identity blocked",
            is_user_action=True,
        )

    @staticmethod
    def logged_out(user_id: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGGED_OUT,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Access revoked by user",
            is_user_action=True,
        )

    @staticmethod
    def expense_logged(
        user_id: str,
        amount: str,
        item: str,
        day: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_LOGGED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Expense logged: {_clip(item)} - {_clip(amount, 40)}",
            details={
                "amount": amount,
                "item": item,
                "date": day,
            },
            is_user_action=True,
        )

    @staticmethod
    def limit_set(user_id: str, amount: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LIMIT_SET,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Daily limit set to {_clip(amount, 40)}",
            details={"daily_limit": amount},
            is_user_action=True,
        )

    @staticmethod
    def limit_alert(
        user_id: str,
        alert: str,
        today_total: str,
        daily_limit: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LIMIT_ALERT,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Daily limit alert: {alert}",
            details={
                "alert": alert,
                "today_total": today_total,
                "daily_limit": daily_limit,
            },
        )

    @staticmethod
    def day_cleared(
        user_id: str,
        day: str,
        removed: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DAY_CLEARED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Cleared {removed} entries for {day}",
            details={"date": day, "removed": removed},
            is_user_action=True,
        )

    @staticmethod
    def bill_capture_started(user_id: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_CAPTURE_STARTED,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Bill capture started",
            is_user_action=True,
        )

    @staticmethod
    def bill_photo_captured(
        user_id: str,
        file_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_PHOTO_CAPTURED,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Bill photo captured, awaiting label",
            details={"file_id": file_id},
            is_user_action=True,
        )

    @staticmethod
    def bill_saved(
        user_id: str,
        label: str,
        file_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_SAVED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Bill saved: {_clip(label)}",
            details={"label": label, "file_id": file_id},
            is_user_action=True,
        )

    @staticmethod
    def input_rejected(
        user_id: str,
        command: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_REJECTED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Rejected /{command}: {reason}",
            details={"command": command, "reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def event_dropped(
        reason: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_DROPPED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Event dropped: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def report_delivered(recipient_id: str, cadence: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_DELIVERED,
            user_id=recipient_id,
            description=f"{cadence.capitalize()} report delivered",
            details={"cadence": cadence},
        )

    @staticmethod
    def report_delivery_failed(recipient_id: str, cadence: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_DELIVERY_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=recipient_id,
            description=f"{cadence.capitalize()} report could not be delivered",
            error_message=error_message,
            details={"cadence": cadence},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Storage failure during {operation}",
            error_message=error_message,
            details={"operation": operation},
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
