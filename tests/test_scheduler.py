"""Tests for ReportScheduler."""

from datetime import datetime
from decimal import Decimal

import pytest

from expense_assistant.bot.scheduler import ReportScheduler
from expense_assistant.config import ReportSettings
from expense_assistant.ledger import ReplyFormatter
from expense_assistant.models.ledger import Cadence, ExpenseEntry, UserRecord
from expense_assistant.reports import ReportAggregator, everyone
from expense_assistant.services.storage import InMemoryLedgerStore, StorageError

from tests.helpers import TZ, FixedClock


def ledger(authorized: bool = True) -> UserRecord:
    return UserRecord(
        authorized=authorized,
        logs=[ExpenseEntry(amount=Decimal("250"), item="Coffee", date="31/10/2026", month=9)],
    )


def make_scheduler(store, deliver, **kwargs) -> ReportScheduler:
    return ReportScheduler(
        aggregator=ReportAggregator(ReplyFormatter()),
        store=store,
        deliver=deliver,
        clock=FixedClock(datetime(2026, 10, 31, 21, 0, tzinfo=TZ)),
        settings=ReportSettings(),
        **kwargs,
    )


class BrokenStore(InMemoryLedgerStore):
    async def get_all(self):
        raise StorageError("unreadable")


class TestReportScheduler:

    def test_not_running_initially(self):
        scheduler = make_scheduler(InMemoryLedgerStore(), None)
        assert scheduler.running is False

    def test_setup_jobs_registers_every_cadence(self):
        scheduler = make_scheduler(InMemoryLedgerStore(), None)
        scheduler.setup_jobs()

        job_ids = {j["id"] for j in scheduler.get_jobs()}
        assert job_ids == {"daily_report", "weekly_report", "monthly_report"}

    def test_default_schedules(self):
        schedules = make_scheduler(InMemoryLedgerStore(), None).schedules()
        assert schedules[Cadence.DAILY] == "0 21 * * *"
        assert schedules[Cadence.WEEKLY] == "0 21 * * sun"
        assert schedules[Cadence.MONTHLY] == "0 21 28-31 * *"

    def test_parse_cron_rejects_bad_expressions(self):
        scheduler = make_scheduler(InMemoryLedgerStore(), None)
        with pytest.raises(ValueError):
            scheduler._parse_cron("0 21 * *")

    @pytest.mark.asyncio
    async def test_run_report_delivers_to_eligible_users(self):
        delivered = []

        async def deliver(digest):
            delivered.append(digest)

        store = InMemoryLedgerStore({"1": ledger(), "2": ledger(authorized=False)})
        count = await make_scheduler(store, deliver).run_report(Cadence.DAILY)

        assert count == 1
        assert [d.recipient_id for d in delivered] == ["1"]
        assert "Coffee" in delivered[0].text

    @pytest.mark.asyncio
    async def test_custom_eligibility(self):
        delivered = []

        async def deliver(digest):
            delivered.append(digest)

        store = InMemoryLedgerStore({"1": ledger(), "2": ledger(authorized=False)})
        await make_scheduler(store, deliver, eligible=everyone).run_report(Cadence.MONTHLY)
        assert sorted(d.recipient_id for d in delivered) == ["1", "2"]

    @pytest.mark.asyncio
    async def test_failed_delivery_does_not_stop_others(self):
        delivered = []

        async def deliver(digest):
            if digest.recipient_id == "1":
                raise RuntimeError("bot was blocked by the user")
            delivered.append(digest)

        store = InMemoryLedgerStore({"1": ledger(), "2": ledger()})
        count = await make_scheduler(store, deliver).run_report(Cadence.WEEKLY)

        assert count == 1
        assert [d.recipient_id for d in delivered] == ["2"]

    @pytest.mark.asyncio
    async def test_unreadable_store_delivers_nothing(self):
        async def deliver(digest):
            raise AssertionError("nothing should be delivered")

        assert await make_scheduler(BrokenStore(), deliver).run_report(Cadence.DAILY) == 0
