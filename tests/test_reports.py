"""Tests for the report aggregator."""

from datetime import date
from decimal import Decimal

import pytest

from expense_assistant.ledger import ReplyFormatter
from expense_assistant.models.ledger import Cadence, ExpenseEntry, UserRecord
from expense_assistant.reports import ReportAggregator, authorized_only, everyone, group_by_day


def entry(amount: str, item: str, day: str, month: int = 9) -> ExpenseEntry:
    return ExpenseEntry(amount=Decimal(amount), item=item, date=day, month=month)


@pytest.fixture
def aggregator():
    return ReportAggregator(ReplyFormatter())


class TestDailyReport:

    def test_itemized_with_total(self, aggregator):
        records = {"1": UserRecord(authorized=True, logs=[
            entry("250", "Coffee", "19/10/2026"),
            entry("50", "Tea", "19/10/2026"),
            entry("999", "Old", "18/10/2026"),
        ])}
        digests = aggregator.daily(records, date(2026, 10, 19))

        assert len(digests) == 1
        digest = digests[0]
        assert digest.recipient_id == "1"
        assert digest.cadence == Cadence.DAILY
        assert digest.text == (
            "🌙 *Daily Report*\n\n"
            "• Coffee: ₹250\n"
            "• Tea: ₹50\n\n"
            "💰 *Total: ₹300*"
        )

    def test_no_entries_no_digest(self, aggregator):
        records = {"1": UserRecord(authorized=True, logs=[entry("1", "a", "18/10/2026")])}
        assert aggregator.daily(records, date(2026, 10, 19)) == []

    def test_eligibility_predicate(self, aggregator):
        records = {
            "1": UserRecord(authorized=True, logs=[entry("1", "a", "19/10/2026")]),
            "2": UserRecord(authorized=False, logs=[entry("2", "b", "19/10/2026")]),
        }
        reference = date(2026, 10, 19)
        assert [d.recipient_id for d in aggregator.daily(records, reference, authorized_only)] == ["1"]
        assert [d.recipient_id for d in aggregator.daily(records, reference, everyone)] == ["1", "2"]

    def test_does_not_mutate_records(self, aggregator):
        record = UserRecord(authorized=True, logs=[entry("1", "a", "19/10/2026")])
        snapshot = record.model_dump()
        for cadence in Cadence:
            aggregator.build(cadence, {"1": record}, date(2026, 10, 31))
        assert record.model_dump() == snapshot


class TestWeeklyReport:

    def test_groups_by_day(self, aggregator):
        records = {"1": UserRecord(authorized=True, logs=[
            entry("10", "Tea", "17/10/2026"),
            entry("20", "Lunch", "18/10/2026"),
            entry("5", "Gum", "17/10/2026"),
        ])}
        digest = aggregator.weekly(records, date(2026, 10, 18))[0]
        assert digest.cadence == Cadence.WEEKLY
        assert digest.text == (
            "📊 *Weekly Audit*\n━━━━━━━━━━━━━\n\n"
            "📅 *17/10/2026*\n  • Tea: ₹10\n  • Gum: ₹5\n\n"
            "📅 *18/10/2026*\n  • Lunch: ₹20\n\n"
        )

    def test_only_last_thirty_entries(self, aggregator):
        logs = [entry(str(n), f"item{n}", "1/10/2026") for n in range(1, 36)]
        records = {"1": UserRecord(authorized=True, logs=logs)}
        text = aggregator.weekly(records, date(2026, 10, 4))[0].text
        assert "item5:" not in text
        assert "item6:" in text
        assert "item35:" in text
        assert text.count("•") == 30

    def test_window_size_is_configurable(self):
        aggregator = ReportAggregator(ReplyFormatter(), weekly_entry_count=2)
        logs = [entry("1", "a", "1/10/2026"), entry("2", "b", "2/10/2026"), entry("3", "c", "3/10/2026")]
        text = aggregator.weekly({"1": UserRecord(authorized=True, logs=logs)}, date(2026, 10, 4))[0].text
        assert "• a:" not in text
        assert text.count("•") == 2

    def test_no_entries_no_digest(self, aggregator):
        assert aggregator.weekly({"1": UserRecord(authorized=True)}, date(2026, 10, 18)) == []

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            ReportAggregator(ReplyFormatter(), weekly_entry_count=0)


class TestGroupByDay:

    def test_chronological_across_month_boundary(self):
        entries = [
            entry("1", "a", "1/11/2026"),
            entry("2", "b", "31/10/2026"),
            entry("3", "c", "1/11/2026"),
        ]
        groups = group_by_day(entries)
        assert [day for day, _ in groups] == ["31/10/2026", "1/11/2026"]
        assert [e.item for e in groups[1][1]] == ["a", "c"]

    def test_unparseable_days_go_last_in_first_seen_order(self):
        entries = [
            entry("1", "a", "someday"),
            entry("2", "b", "2/10/2026"),
            entry("3", "c", "otherday"),
            entry("4", "d", "1/10/2026"),
        ]
        assert [day for day, _ in group_by_day(entries)] == [
            "1/10/2026", "2/10/2026", "someday", "otherday",
        ]


class TestMonthlyReport:

    def test_sent_on_last_day_of_month(self, aggregator):
        records = {"1": UserRecord(authorized=True, logs=[
            entry("100", "a", "1/10/2026", month=9),
            entry("50.5", "b", "31/10/2026", month=9),
            entry("999", "c", "30/9/2026", month=8),
        ])}
        digests = aggregator.monthly(records, date(2026, 10, 31))
        assert len(digests) == 1
        assert digests[0].text == (
            "🗓️ *Monthly Intel*\n"
            "Total spent: *₹150.5*\n"
            "Check /bills for receipts."
        )

    @pytest.mark.parametrize("reference", [date(2026, 10, 28), date(2026, 10, 30), date(2026, 2, 27)])
    def test_nothing_before_month_end(self, aggregator, reference):
        records = {"1": UserRecord(authorized=True, logs=[
            entry("1", "a", "1/1/2026", month=reference.month - 1),
        ])}
        assert aggregator.monthly(records, reference) == []

    def test_february_end(self, aggregator):
        records = {"1": UserRecord(authorized=True, logs=[entry("7", "a", "3/2/2026", month=1)])}
        assert len(aggregator.monthly(records, date(2026, 2, 28))) == 1

    def test_no_entries_in_month_no_digest(self, aggregator):
        records = {"1": UserRecord(authorized=True, logs=[entry("1", "a", "1/9/2026", month=8)])}
        assert aggregator.monthly(records, date(2026, 10, 31)) == []

    def test_build_dispatches_by_cadence(self, aggregator):
        records = {"1": UserRecord(authorized=True, logs=[entry("1", "a", "31/10/2026")])}
        reference = date(2026, 10, 31)
        assert aggregator.build(Cadence.MONTHLY, records, reference)[0].cadence == Cadence.MONTHLY
        assert aggregator.build(Cadence.DAILY, records, reference)[0].cadence == Cadence.DAILY
