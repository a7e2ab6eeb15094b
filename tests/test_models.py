"""
Tests for Expense Assistant models

Test strategy:
1. Unit tests for individual components (models, grammars, engine)
2. Flow tests for the router against an in-memory store
3. No real API calls in tests (use mocks)
"""

import json
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from expense_assistant.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    BillEntry,
    ExpenseEntry,
    IncomingEvent,
    InteractionState,
    InteractionStep,
    PhotoSize,
    Reply,
    ReplyKind,
    UserRecord,
)
from expense_assistant.models.ledger import decimal_to_number


class TestLedgerModels:
    """Tests for persisted ledger models."""

    def test_expense_entry_defaults_item_to_misc(self):
        entry = ExpenseEntry(amount=Decimal("250"), item="", date="19/10/2026", month=9)
        assert entry.item == "Misc"

    def test_expense_entry_rejects_month_out_of_range(self):
        with pytest.raises(ValidationError):
            ExpenseEntry(amount=Decimal("1"), date="19/10/2026", month=12)

    def test_expense_entry_rejects_non_finite_amount(self):
        with pytest.raises(ValidationError):
            ExpenseEntry(amount=Decimal("NaN"), date="19/10/2026", month=9)

    def test_expense_entry_is_immutable(self):
        entry = ExpenseEntry(amount=Decimal("5"), date="19/10/2026", month=9)
        with pytest.raises(ValidationError):
            entry.amount = Decimal("6")

    def test_user_record_defaults(self):
        record = UserRecord()
        assert record.authorized is False
        assert record.daily_limit == 0
        assert record.logs == []
        assert record.vault == []
        assert record.has_limit is False

    def test_user_record_loads_original_layout(self):
        """Records written by the first version of the bot load unchanged."""
        raw = {
            "logs": [{"amount": 12.5, "item": "Tea", "date": "5/3/2026", "month": 2}],
            "dailyLimit": 1000,
            "vault": [{"label": "Lunch", "fileId": "AgADxyz", "date": "5/3/2026"}],
        }
        record = UserRecord.model_validate(raw)
        assert record.authorized is False
        assert record.daily_limit == Decimal("1000")
        assert record.logs[0].amount == Decimal("12.5")
        assert record.vault[0].file_id == "AgADxyz"

    def test_to_storage_dict_uses_camel_case_and_numbers(self):
        record = UserRecord(
            authorized=True,
            daily_limit=Decimal("1000"),
            logs=[ExpenseEntry(amount=Decimal("12.5"), item="Tea", date="5/3/2026", month=2)],
            vault=[BillEntry(label="Lunch", file_id="AgADxyz", date="5/3/2026")],
        )
        data = record.to_storage_dict()
        assert data["dailyLimit"] == 1000
        assert data["logs"][0]["amount"] == 12.5
        assert data["vault"][0]["fileId"] == "AgADxyz"
        assert "daily_limit" not in data
        json.dumps(data)

    def test_decimal_to_number_never_loses_digits(self):
        assert decimal_to_number(Decimal("250")) == 250
        assert decimal_to_number(Decimal("12.5")) == 12.5
        assert decimal_to_number(Decimal("12345678901234567.89")) == "12345678901234567.89"
        huge = Decimal("1" + "0" * 400 + ".5")
        assert Decimal(decimal_to_number(huge)) == huge

    def test_logs_for_filters_by_day_in_order(self):
        record = UserRecord(logs=[
            ExpenseEntry(amount=Decimal("1"), item="a", date="18/10/2026", month=9),
            ExpenseEntry(amount=Decimal("2"), item="b", date="19/10/2026", month=9),
            ExpenseEntry(amount=Decimal("3"), item="c", date="19/10/2026", month=9),
        ])
        assert [e.item for e in record.logs_for("19/10/2026")] == ["b", "c"]


class TestInteractionState:
    """Tests for the bill capture state shape."""

    def test_awaiting_photo_has_no_file(self):
        state = InteractionState.awaiting_photo()
        assert state.step == InteractionStep.AWAITING_PHOTO
        assert state.file_id is None

    def test_awaiting_label_requires_file(self):
        with pytest.raises(ValidationError):
            InteractionState(step=InteractionStep.AWAITING_LABEL)

    def test_awaiting_photo_cannot_carry_file(self):
        with pytest.raises(ValidationError):
            InteractionState(step=InteractionStep.AWAITING_PHOTO, file_id="x")


class TestEventsAndReplies:
    """Tests for transport-neutral events and replies."""

    def test_sender_id_is_coerced_to_string(self):
        event = IncomingEvent(sender_id=42, text="hi")
        assert event.sender_id == "42"

    def test_largest_photo_is_last(self):
        event = IncomingEvent(
            sender_id="1",
            photo=[PhotoSize(file_id="small"), PhotoSize(file_id="large")],
        )
        assert event.has_photo is True
        assert event.has_text is False
        assert event.largest_photo.file_id == "large"

    def test_photo_reply_requires_file(self):
        with pytest.raises(ValidationError):
            Reply(kind=ReplyKind.PHOTO, text="caption")

    def test_photo_message_defaults_to_markdown(self):
        reply = Reply.photo_message("file-1", caption="hi")
        assert reply.kind == ReplyKind.PHOTO
        assert reply.markdown is True


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_LOGGED,
            description="Expense logged",
        )
        assert event.event_type == AuditEventType.EXPENSE_LOGGED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.bill_saved(
            user_id="1001", label="Lunch", file_id="AgAD", correlation_id=uuid4()
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "bill_saved"
        assert log_dict["details"]["label"] == "Lunch"

    def test_audit_event_to_sheets_row(self):
        event = AuditEventBuilder.access_granted("1001")
        row = event.to_sheets_row()
        assert len(row) == 10
        assert row[2] == "access_granted"
        assert row[4] == "1001"
        assert row[9] == "True"

    def test_access_denied_is_a_warning(self):
        event = AuditEventBuilder.access_denied("1001")
        assert event.severity == AuditSeverity.WARNING
        assert event.is_user_action is True

    def test_long_labels_are_clipped_in_description(self):
        event = AuditEventBuilder.bill_saved(user_id="1", label="x" * 2000, file_id="f")
        assert len(event.description) <= 500
        assert event.details["label"] == "x" * 2000

    def test_correlation_id_is_carried(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.expense_logged(
            user_id="1", amount="250", item="Coffee", day="19/10/2026",
            correlation_id=correlation_id,
        )
        assert event.correlation_id == correlation_id
        assert event.details == {"amount": "250", "item": "Coffee", "date": "19/10/2026"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
