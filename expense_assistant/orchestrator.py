"""
Main Orchestrator for Expense Assistant

This module ties together all the components and defines the
end-to-end flow for one inbound chat event:

    event → gate → classify → (command | interaction | expense | inert)
          → mutate ledger → persist → replies

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the ledger before the authorization gate
- One event per user is handled at a time (per-user lock held across
  the whole read-modify-write)
- Every step is audited
- Store failures are audited and re-raised, never swallowed

Precedence after the gate: known commands, then an active interaction,
then expense text, then nothing. Commands come first so /addbill can
restart a capture and /stats still works in the middle of one.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from expense_assistant.access import AuthorizationGate, GateDecision
from expense_assistant.audit import AuditLogger, create_correlation_id
from expense_assistant.clock import Clock, SystemClock, day_string, month_index
from expense_assistant.config import Settings, get_settings
from expense_assistant.interaction import InteractionStateTracker, TrackerOutcome
from expense_assistant.ledger import LedgerEngine, LimitAlert, ReplyFormatter
from expense_assistant.models.ledger import IncomingEvent, Reply, UserRecord
from expense_assistant.reports import ReportAggregator
from expense_assistant.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    JsonFileLedgerStore,
    LedgerStoreInterface,
    StorageError,
)
from expense_assistant.validation import (
    Command,
    ExpenseInput,
    ParsedCommand,
    parse_amount,
    parse_bill_index,
    parse_command,
    parse_expense,
)


# =============================================================================
# CLASSIFICATION
# =============================================================================

class EventKind(str, Enum):
    COMMAND = "command"
    INTERACTION = "interaction"
    EXPENSE = "expense"
    INERT = "inert"


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EventKind
    command: Optional[ParsedCommand] = None
    expense: Optional[ExpenseInput] = None


class MessageClassifier:
    """Decides which branch handles an event that has passed the gate."""

    def classify(self, event: IncomingEvent, interaction_active: bool) -> Classification:
        command = parse_command(event.text)
        if command is not None:
            return Classification(kind=EventKind.COMMAND, command=command)

        if interaction_active:
            return Classification(kind=EventKind.INTERACTION)

        expense = parse_expense(event.text)
        if expense is not None:
            return Classification(kind=EventKind.EXPENSE, expense=expense)

        return Classification(kind=EventKind.INERT)


# =============================================================================
# PER-USER SERIALIZATION
# =============================================================================

class UserLockRegistry:
    """
    One asyncio.Lock per user id; there is no cross-user lock.

    A lock lives only while some event for that user holds it or waits
    on it, so the registry stays bounded by the users currently active.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, user_id: str):
        """Hold the user's lock, dropping it once nobody else needs it."""
        lock = self.lock_for(user_id)
        self._users[user_id] = self._users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[user_id] -= 1
            if not self._users[user_id]:
                del self._users[user_id]
                del self._locks[user_id]

    def __len__(self) -> int:
        return len(self._locks)


# =============================================================================
# ROUTER
# =============================================================================

class MessageRouter:
    """
    Handles one inbound event and returns the replies for its sender.

    The router owns no transport: it takes an IncomingEvent and gives
    back a list of Reply objects for the caller to send.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        gate: AuthorizationGate,
        tracker: Optional[InteractionStateTracker] = None,
        engine: Optional[LedgerEngine] = None,
        formatter: Optional[ReplyFormatter] = None,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
        classifier: Optional[MessageClassifier] = None,
    ):
        self._store = store
        self._gate = gate
        self._tracker = tracker or InteractionStateTracker()
        self._engine = engine or LedgerEngine()
        self._formatter = formatter or ReplyFormatter()
        self._clock = clock or SystemClock()
        self._audit_logger = audit_logger or AuditLogger()
        self._classifier = classifier or MessageClassifier()
        self._locks = UserLockRegistry()

    @property
    def tracker(self) -> InteractionStateTracker:
        return self._tracker

    async def handle(self, event: IncomingEvent) -> list[Reply]:
        """
        Handle one event end to end.

        Raises:
            StorageError: if the ledger could not be read or written.
                Nothing is replied in that case.
        """
        correlation_id = create_correlation_id()

        if not event.sender_id:
            await self._audit_logger.log_event_dropped(
                reason="missing_sender",
                correlation_id=correlation_id,
            )
            return []

        user_id = event.sender_id
        async with self._locks.hold(user_id):
            return await self._handle_locked(user_id, event, correlation_id)

    async def _handle_locked(
        self,
        user_id: str,
        event: IncomingEvent,
        correlation_id: UUID,
    ) -> list[Reply]:
        record = await self._load(user_id, correlation_id)

        decision = self._gate.check(event.text, record)
        if decision == GateDecision.GRANTED:
            self._engine.authorize(record)
            await self._save(user_id, record, correlation_id)
            await self._audit_logger.log_access_granted(user_id, correlation_id)
            return [Reply.text_message(self._formatter.access_granted())]

        if decision == GateDecision.BLOCKED:
            await self._audit_logger.log_access_denied(user_id, correlation_id)
            return [Reply.text_message(self._formatter.not_authorized())]

        classification = self._classifier.classify(
            event,
            interaction_active=self._tracker.is_active(user_id),
        )

        if classification.kind == EventKind.COMMAND:
            return await self._handle_command(
                user_id, event, record, classification.command, correlation_id
            )
        if classification.kind == EventKind.INTERACTION:
            return await self._handle_interaction(user_id, event, record, correlation_id)
        if classification.kind == EventKind.EXPENSE:
            return await self._handle_expense(
                user_id, record, classification.expense, correlation_id
            )

        await self._audit_logger.log_event_dropped(
            reason="unrecognized_input",
            user_id=user_id,
            correlation_id=correlation_id,
        )
        return []

    # -------------------------------------------------------------------------
    # Store access
    # -------------------------------------------------------------------------

    async def _load(self, user_id: str, correlation_id: UUID) -> UserRecord:
        try:
            record = await self._store.get(user_id)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="get",
                error_message=str(e),
                user_id=user_id,
                correlation_id=correlation_id,
            )
            raise
        return record if record is not None else UserRecord()

    async def _save(self, user_id: str, record: UserRecord, correlation_id: UUID) -> None:
        try:
            await self._store.set(user_id, record)
        except StorageError as e:
            await self._audit_logger.log_storage_error(
                operation="set",
                error_message=str(e),
                user_id=user_id,
                correlation_id=correlation_id,
            )
            raise

    def _today(self) -> tuple[str, int]:
        now = self._clock.now().date()
        return day_string(now), month_index(now)

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    async def _handle_command(
        self,
        user_id: str,
        event: IncomingEvent,
        record: UserRecord,
        parsed: ParsedCommand,
        correlation_id: UUID,
    ) -> list[Reply]:
        fmt = self._formatter
        command = parsed.command

        if command == Command.START:
            return [
                Reply.text_message(fmt.welcome(event.sender_name), markdown=True),
                Reply.text_message(fmt.manual(), markdown=True),
            ]

        if command == Command.STATS:
            today, _ = self._today()
            summary = self._engine.stats(record, today)
            return [Reply.text_message(
                fmt.stats(summary.day, summary.entries, summary.total),
                markdown=True,
            )]

        if command == Command.SETLIMIT:
            amount = parse_amount(parsed.first_arg)
            if amount is None:
                await self._audit_logger.log_input_rejected(
                    user_id=user_id,
                    command=command.value,
                    reason="amount is not a plain decimal number",
                    correlation_id=correlation_id,
                )
                return [Reply.text_message(fmt.setlimit_usage())]
            self._engine.set_limit(record, amount)
            await self._save(user_id, record, correlation_id)
            await self._audit_logger.log_limit_set(user_id, str(amount), correlation_id)
            return [Reply.text_message(fmt.limit_set(amount))]

        if command == Command.ADDBILL:
            self._tracker.begin_bill_capture(user_id)
            await self._audit_logger.log_bill_capture_started(user_id, correlation_id)
            return [Reply.text_message(fmt.ask_photo())]

        if command == Command.BILLS:
            bills = self._engine.list_bills(record)
            if not bills:
                return [Reply.text_message(fmt.vault_empty())]
            return [Reply.text_message(fmt.bill_list(bills), markdown=True)]

        if command == Command.VIEW:
            bill = self._engine.view_bill(record, parse_bill_index(parsed.first_arg))
            if bill is None:
                await self._audit_logger.log_input_rejected(
                    user_id=user_id,
                    command=command.value,
                    reason="no bill at that position",
                    correlation_id=correlation_id,
                )
                return [Reply.text_message(fmt.not_found())]
            return [Reply.photo_message(bill.file_id, caption=fmt.bill_caption(bill))]

        if command == Command.CLEAR:
            today, _ = self._today()
            removed = self._engine.clear_today(record, today)
            await self._save(user_id, record, correlation_id)
            await self._audit_logger.log_day_cleared(user_id, today, removed, correlation_id)
            return [Reply.text_message(fmt.day_cleared())]

        if command == Command.LOGOUT:
            self._engine.revoke(record)
            await self._save(user_id, record, correlation_id)
            self._tracker.clear(user_id)
            await self._audit_logger.log_logged_out(user_id, correlation_id)
            return [Reply.text_message(fmt.logged_out())]

        raise ValueError(f"Unhandled command: {command}")

    async def _handle_interaction(
        self,
        user_id: str,
        event: IncomingEvent,
        record: UserRecord,
        correlation_id: UUID,
    ) -> list[Reply]:
        result = self._tracker.advance(user_id, event)

        if result.outcome == TrackerOutcome.PHOTO_CAPTURED:
            await self._audit_logger.log_bill_photo_captured(
                user_id, result.file_id, correlation_id
            )
            return [Reply.text_message(self._formatter.ask_label())]

        if result.outcome == TrackerOutcome.LABEL_RECEIVED:
            today, _ = self._today()
            self._engine.save_bill(record, result.label, result.file_id, today)
            await self._save(user_id, record, correlation_id)
            self._tracker.clear(user_id)
            await self._audit_logger.log_bill_saved(
                user_id=user_id,
                label=result.label,
                file_id=result.file_id,
                correlation_id=correlation_id,
            )
            return [Reply.text_message(self._formatter.bill_saved())]

        # Payload doesn't match the awaited step; the state stays put.
        await self._audit_logger.log_event_dropped(
            reason="interaction_payload_mismatch",
            user_id=user_id,
            correlation_id=correlation_id,
        )
        return []

    async def _handle_expense(
        self,
        user_id: str,
        record: UserRecord,
        expense: ExpenseInput,
        correlation_id: UUID,
    ) -> list[Reply]:
        today, month = self._today()
        result = self._engine.log_expense(record, expense.amount, expense.item, today, month)
        await self._save(user_id, record, correlation_id)
        await self._audit_logger.log_expense_logged(
            user_id=user_id,
            amount=str(expense.amount),
            item=result.entry.item,
            day=today,
            correlation_id=correlation_id,
        )

        replies = [Reply.text_message(self._formatter.logged(expense.amount))]

        if result.alert != LimitAlert.NONE:
            await self._audit_logger.log_limit_alert(
                user_id=user_id,
                alert=result.alert.value,
                today_total=str(result.today_total),
                daily_limit=str(record.daily_limit),
                correlation_id=correlation_id,
            )
        if result.alert == LimitAlert.EXCEEDED:
            replies.append(Reply.text_message(
                self._formatter.limit_exceeded(result.today_total), markdown=True
            ))
        elif result.alert == LimitAlert.WARNING:
            replies.append(Reply.text_message(self._formatter.limit_warning(), markdown=True))

        return replies


# =============================================================================
# COMPONENT FACTORY
# =============================================================================

@dataclass
class AppComponents:
    """Everything the process entrypoint wires together."""
    settings: Settings
    store: LedgerStoreInterface
    audit_logger: AuditLogger
    clock: SystemClock
    formatter: ReplyFormatter
    router: MessageRouter
    aggregator: ReportAggregator
    sheets_client: Optional[GoogleSheetsClient] = None


def create_ledger_store(
    settings: Settings,
) -> tuple[LedgerStoreInterface, AuditLogger, Optional[GoogleSheetsClient]]:
    """
    Build the configured ledger store and its audit logger.

    Returns:
        (store, audit_logger, sheets_client)
    """
    if settings.storage.backend == "google_sheets":
        sheets_client = GoogleSheetsClient(settings.google_sheets)
        store = GoogleSheetsLedgerStore(sheets_client)
        audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        return store, audit_logger, sheets_client

    return JsonFileLedgerStore(settings.storage.json_path), AuditLogger(), None


def create_app_components(settings: Optional[Settings] = None) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from. Defaults to get_settings().
    """
    settings = settings or get_settings()

    store, audit_logger, sheets_client = create_ledger_store(settings)
    clock = SystemClock(settings.app.timezone)
    formatter = ReplyFormatter(settings.app.currency_symbol)

    router = MessageRouter(
        store=store,
        gate=AuthorizationGate(settings.access.code),
        tracker=InteractionStateTracker(),
        engine=LedgerEngine(),
        formatter=formatter,
        clock=clock,
        audit_logger=audit_logger,
    )
    aggregator = ReportAggregator(
        formatter,
        weekly_entry_count=settings.reports.weekly_entry_count,
    )

    return AppComponents(
        settings=settings,
        store=store,
        audit_logger=audit_logger,
        clock=clock,
        formatter=formatter,
        router=router,
        aggregator=aggregator,
        sheets_client=sheets_client,
    )
