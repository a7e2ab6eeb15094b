"""Ledger mutation and reply formatting package."""

from expense_assistant.ledger.engine import (
    DailySummary,
    LedgerEngine,
    LimitAlert,
    LogResult,
    WARNING_RATIO,
    sum_amounts,
)
from expense_assistant.ledger.formatting import ReplyFormatter, format_amount

__all__ = [
    "DailySummary",
    "LedgerEngine",
    "LimitAlert",
    "LogResult",
    "WARNING_RATIO",
    "sum_amounts",
    "ReplyFormatter",
    "format_amount",
]
