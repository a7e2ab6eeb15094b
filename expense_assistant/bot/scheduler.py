"""
Scheduled report delivery.

Each cadence is a cron job on an APScheduler AsyncIOScheduler running
in the bot's event loop, evaluated in the ledger's timezone. A job
takes a get_all() snapshot, asks the aggregator for digests and
delivers them one by one; it never takes the router's per-user locks.
"""

from typing import Awaitable, Callable, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from expense_assistant.audit import AuditLogger
from expense_assistant.clock import Clock
from expense_assistant.config import ReportSettings
from expense_assistant.models.ledger import Cadence, Digest
from expense_assistant.reports import EligibilityPredicate, ReportAggregator, authorized_only
from expense_assistant.services.storage import LedgerStoreInterface, StorageError


logger = structlog.get_logger("expense_assistant.scheduler")

DeliverFn = Callable[[Digest], Awaitable[None]]


class ReportScheduler:
    """Manages the daily, weekly and monthly report jobs."""

    def __init__(
        self,
        aggregator: ReportAggregator,
        store: LedgerStoreInterface,
        deliver: DeliverFn,
        clock: Clock,
        settings: Optional[ReportSettings] = None,
        timezone: str = "Asia/Kolkata",
        audit_logger: Optional[AuditLogger] = None,
        eligible: EligibilityPredicate = authorized_only,
    ):
        self._aggregator = aggregator
        self._store = store
        self._deliver = deliver
        self._clock = clock
        self._settings = settings or ReportSettings()
        self._timezone = timezone
        self._audit_logger = audit_logger or AuditLogger()
        self._eligible = eligible
        self._scheduler = AsyncIOScheduler(timezone=timezone)
        self._running = False

    def schedules(self) -> dict[Cadence, str]:
        return {
            Cadence.DAILY: self._settings.daily_schedule,
            Cadence.WEEKLY: self._settings.weekly_schedule,
            Cadence.MONTHLY: self._settings.monthly_schedule,
        }

    def setup_jobs(self) -> None:
        """Register one cron job per cadence."""
        for cadence, expr in self.schedules().items():
            self._scheduler.add_job(
                self.run_report,
                trigger=self._parse_cron(expr),
                args=[cadence],
                id=f"{cadence.value}_report",
                name=f"{cadence.value} report",
                replace_existing=True,
            )
            logger.info("report_job_registered", cadence=cadence.value, schedule=expr)

    def start(self) -> None:
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("scheduler_started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("scheduler_stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str) -> CronTrigger:
        """Parse a 5-field cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
                timezone=self._timezone,
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def run_report(self, cadence: Cadence) -> int:
        """
        Build and deliver one cadence's digests.

        A failed delivery is audited and skipped so the remaining
        recipients still get theirs. Returns the number delivered.
        """
        reference = self._clock.now().date()
        try:
            records = await self._store.get_all()
        except StorageError as e:
            await self._audit_logger.log_storage_error(operation="get_all", error_message=str(e))
            logger.error("report_snapshot_failed", cadence=cadence.value, error=str(e))
            return 0

        digests = self._aggregator.build(cadence, records, reference, self._eligible)
        delivered = 0
        for digest in digests:
            try:
                await self._deliver(digest)
            except Exception as e:
                await self._audit_logger.log_report_delivery_failed(
                    digest.recipient_id, cadence.value, str(e)
                )
                continue
            delivered += 1
            await self._audit_logger.log_report_delivered(digest.recipient_id, cadence.value)

        logger.info(
            "report_run_complete",
            cadence=cadence.value,
            digests=len(digests),
            delivered=delivered,
        )
        return delivered
