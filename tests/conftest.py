"""Shared fixtures: a fixed clock, an in-memory store and a wired router."""

from datetime import datetime

import pytest

from expense_assistant.access import AuthorizationGate
from expense_assistant.audit import AuditLogger
from expense_assistant.interaction import InteractionStateTracker
from expense_assistant.ledger import LedgerEngine, ReplyFormatter
from expense_assistant.orchestrator import MessageRouter
from expense_assistant.services.storage import InMemoryLedgerStore

from tests.helpers import ACCESS_CODE, TZ, FixedClock


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 10, 19, 12, 30, tzinfo=TZ))


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def tracker() -> InteractionStateTracker:
    return InteractionStateTracker()


@pytest.fixture
def router(store, tracker, clock) -> MessageRouter:
    return MessageRouter(
        store=store,
        gate=AuthorizationGate(ACCESS_CODE),
        tracker=tracker,
        engine=LedgerEngine(),
        formatter=ReplyFormatter(),
        clock=clock,
        audit_logger=AuditLogger(),
    )
