"""
Data Models Package

This package contains all Pydantic models used in the Expense Assistant.
All data flowing through the conversation core must conform to these schemas.
"""

from expense_assistant.models.ledger import (
    DEFAULT_ITEM,
    BillEntry,
    Cadence,
    Digest,
    ExpenseEntry,
    IncomingEvent,
    InteractionState,
    InteractionStep,
    PhotoSize,
    Reply,
    ReplyKind,
    UserRecord,
)
from expense_assistant.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_ITEM",
    "BillEntry",
    "Cadence",
    "Digest",
    "ExpenseEntry",
    "IncomingEvent",
    "InteractionState",
    "InteractionStep",
    "PhotoSize",
    "Reply",
    "ReplyKind",
    "UserRecord",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
