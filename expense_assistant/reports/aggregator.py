"""
Report Aggregator

DESIGN DECISION: Reports are a PURE function of
(records snapshot, reference date, eligibility predicate).
The aggregator never touches storage, the clock or the chat
transport; the scheduler takes a get_all() snapshot, calls build()
and delivers whatever digests come back.

GUARANTEES:
- Never mutates a record
- A user with no matching entries gets no digest
- Every matching entry appears in its digest (content completeness)
"""

from datetime import date
from typing import Callable

from expense_assistant.clock import (
    day_string,
    is_last_day_of_month,
    month_index,
    parse_day_string,
)
from expense_assistant.ledger.engine import sum_amounts
from expense_assistant.ledger.formatting import ReplyFormatter
from expense_assistant.models.ledger import Cadence, Digest, ExpenseEntry, UserRecord


EligibilityPredicate = Callable[[str, UserRecord], bool]


def everyone(user_id: str, record: UserRecord) -> bool:
    return True


def authorized_only(user_id: str, record: UserRecord) -> bool:
    """Only identities that currently hold access receive reports."""
    return record.authorized


def group_by_day(entries: list[ExpenseEntry]) -> list[tuple[str, list[ExpenseEntry]]]:
    """
    Group entries by their day key, oldest day first.

    Entries keep their insertion order inside a group. Day keys that
    cannot be parsed sort after all dated groups, in first-seen order.
    """
    groups: dict[str, list[ExpenseEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.date, []).append(entry)

    def sort_key(day: str):
        parsed = parse_day_string(day)
        return (parsed is None, parsed or date.min)

    return [(day, groups[day]) for day in sorted(groups, key=sort_key)]


class ReportAggregator:
    """Builds periodic digests from a snapshot of every ledger."""

    def __init__(
        self,
        formatter: ReplyFormatter,
        weekly_entry_count: int = 30,
    ):
        if weekly_entry_count < 1:
            raise ValueError("weekly_entry_count must be at least 1")
        self._formatter = formatter
        self._weekly_entry_count = weekly_entry_count

    def daily(
        self,
        records: dict[str, UserRecord],
        reference: date,
        eligible: EligibilityPredicate = authorized_only,
    ) -> list[Digest]:
        """Itemized list and total of the reference day's entries."""
        today = day_string(reference)
        digests = []
        for user_id, record in records.items():
            if not eligible(user_id, record):
                continue
            entries = record.logs_for(today)
            if not entries:
                continue
            digests.append(Digest(
                recipient_id=user_id,
                cadence=Cadence.DAILY,
                text=self._formatter.daily_report(entries, sum_amounts(entries)),
            ))
        return digests

    def weekly(
        self,
        records: dict[str, UserRecord],
        reference: date,
        eligible: EligibilityPredicate = authorized_only,
    ) -> list[Digest]:
        """
        The most recent stored entries grouped by day.

        This is a count window (the last N entries), not a calendar
        window; the reference date does not filter anything.
        """
        digests = []
        for user_id, record in records.items():
            if not eligible(user_id, record):
                continue
            entries = record.logs[-self._weekly_entry_count:]
            if not entries:
                continue
            digests.append(Digest(
                recipient_id=user_id,
                cadence=Cadence.WEEKLY,
                text=self._formatter.weekly_report(group_by_day(entries)),
            ))
        return digests

    def monthly(
        self,
        records: dict[str, UserRecord],
        reference: date,
        eligible: EligibilityPredicate = authorized_only,
    ) -> list[Digest]:
        """
        Total of the entries stamped with the reference month.

        Produces nothing unless the reference date is the last day of
        its month. Entries match on month only, so an entry from the
        same month of an earlier year still counts.
        """
        if not is_last_day_of_month(reference):
            return []

        month = month_index(reference)
        digests = []
        for user_id, record in records.items():
            if not eligible(user_id, record):
                continue
            entries = [entry for entry in record.logs if entry.month == month]
            if not entries:
                continue
            digests.append(Digest(
                recipient_id=user_id,
                cadence=Cadence.MONTHLY,
                text=self._formatter.monthly_report(sum_amounts(entries)),
            ))
        return digests

    def build(
        self,
        cadence: Cadence,
        records: dict[str, UserRecord],
        reference: date,
        eligible: EligibilityPredicate = authorized_only,
    ) -> list[Digest]:
        builders = {
            Cadence.DAILY: self.daily,
            Cadence.WEEKLY: self.weekly,
            Cadence.MONTHLY: self.monthly,
        }
        return builders[cadence](records, reference, eligible)
