"""
Ledger Mutation Engine

DESIGN DECISION: The engine is pure logic over a UserRecord. It never
reads or writes storage, never looks at the clock and never formats
text. The caller loads the record, passes today's day key in, and
persists the record afterwards.

GUARANTEES:
- logs and vault are append-only; clear_today() is the only removal
  and touches exactly the entries stamped with the given day
- limit alerts are advisory; an expense is logged whatever the limit
- totals are always recomputed from the entries, never cached
"""

from decimal import MAX_PREC, Decimal, localcontext
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from expense_assistant.models.ledger import BillEntry, ExpenseEntry, UserRecord


WARNING_RATIO = Decimal("0.8")


class LimitAlert(str, Enum):
    """Where today's total sits relative to the daily limit."""
    NONE = "none"
    WARNING = "warning"    # >= 80% of the limit
    EXCEEDED = "exceeded"  # >= 100% of the limit


class LogResult(BaseModel):
    """Outcome of logging one expense."""
    model_config = ConfigDict(frozen=True)

    entry: ExpenseEntry
    today_total: Decimal
    alert: LimitAlert = LimitAlert.NONE


class DailySummary(BaseModel):
    """Read-only view of one day's entries."""
    model_config = ConfigDict(frozen=True)

    day: str
    entries: list[ExpenseEntry]
    total: Decimal

    @property
    def is_empty(self) -> bool:
        return not self.entries


def sum_amounts(entries: list[ExpenseEntry]) -> Decimal:
    """Exact sum; the default 28-digit context would round large totals."""
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        return sum((entry.amount for entry in entries), Decimal(0))


class LedgerEngine:
    """Applies accepted inputs to a user's ledger."""

    # ------------------------------------------------------------------
    # Access flag
    # ------------------------------------------------------------------

    def authorize(self, record: UserRecord) -> None:
        record.authorized = True

    def revoke(self, record: UserRecord) -> None:
        record.authorized = False

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def log_expense(
        self,
        record: UserRecord,
        amount: Decimal,
        item: str,
        today: str,
        month: int,
    ) -> LogResult:
        """Append an entry and evaluate today's running total against the limit."""
        entry = ExpenseEntry(amount=amount, item=item, date=today, month=month)
        record.logs.append(entry)

        today_total = self.today_total(record, today)
        return LogResult(
            entry=entry,
            today_total=today_total,
            alert=self.evaluate_limit(today_total, record.daily_limit),
        )

    def today_total(self, record: UserRecord, today: str) -> Decimal:
        return sum_amounts(record.logs_for(today))

    @staticmethod
    def evaluate_limit(total: Decimal, daily_limit: Decimal) -> LimitAlert:
        """A limit of zero (or less) disables alerts."""
        if daily_limit <= 0:
            return LimitAlert.NONE
        if total >= daily_limit:
            return LimitAlert.EXCEEDED
        if total >= daily_limit * WARNING_RATIO:
            return LimitAlert.WARNING
        return LimitAlert.NONE

    def set_limit(self, record: UserRecord, amount: Decimal) -> None:
        """Overwrite the daily limit; no floor or ceiling is applied."""
        record.daily_limit = amount

    def clear_today(self, record: UserRecord, today: str) -> int:
        """Remove today's entries; returns how many were removed."""
        kept = [entry for entry in record.logs if entry.date != today]
        removed = len(record.logs) - len(kept)
        record.logs = kept
        return removed

    def stats(self, record: UserRecord, today: str) -> DailySummary:
        entries = record.logs_for(today)
        return DailySummary(day=today, entries=entries, total=sum_amounts(entries))

    # ------------------------------------------------------------------
    # Bill vault
    # ------------------------------------------------------------------

    def save_bill(
        self,
        record: UserRecord,
        label: str,
        file_id: str,
        today: str,
    ) -> BillEntry:
        bill = BillEntry(label=label, file_id=file_id, date=today)
        record.vault.append(bill)
        return bill

    def list_bills(self, record: UserRecord) -> list[BillEntry]:
        return list(record.vault)

    def view_bill(self, record: UserRecord, index: Optional[int]) -> Optional[BillEntry]:
        """Look up a bill by its 1-based position; None if there is no such bill."""
        if index is None or index < 1 or index > len(record.vault):
            return None
        return record.vault[index - 1]
