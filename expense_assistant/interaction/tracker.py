"""
Interaction State Tracker

DESIGN DECISION: Multi-step inputs are modeled as separate discrete
events against a small per-user state slot, never as a suspended call.
The only workflow today is bill capture:

    idle --/addbill--> AWAITING_PHOTO --photo--> AWAITING_LABEL{file_id} --text--> idle

The slot lives in process memory and is lost on restart. That is
acceptable: it only tracks an in-flight input, never committed data.
There is no expiry; an abandoned capture waits until it is replaced.

A payload that doesn't match the current step (text while a photo is
expected, a photo while a label is expected) is dropped without
advancing the state.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from expense_assistant.models.ledger import (
    IncomingEvent,
    InteractionState,
    InteractionStep,
)


class TrackerOutcome(str, Enum):
    IDLE = "idle"                      # No interaction active
    PHOTO_CAPTURED = "photo_captured"  # AWAITING_PHOTO -> AWAITING_LABEL
    LABEL_RECEIVED = "label_received"  # Ready to save; caller calls clear()
    DROPPED = "dropped"                # Payload didn't match the step


class TrackerResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: TrackerOutcome
    file_id: Optional[str] = None
    label: Optional[str] = None


class InteractionStateTracker:
    """
    Owns the per-user interaction slots.

    One instance per process; inject a fresh one per test.
    """

    def __init__(self):
        self._states: dict[str, InteractionState] = {}

    def get(self, user_id: str) -> Optional[InteractionState]:
        return self._states.get(user_id)

    def is_active(self, user_id: str) -> bool:
        return user_id in self._states

    def begin_bill_capture(self, user_id: str) -> InteractionState:
        """Start (or restart) bill capture, discarding any captured photo."""
        state = InteractionState.awaiting_photo()
        self._states[user_id] = state
        return state

    def advance(self, user_id: str, event: IncomingEvent) -> TrackerResult:
        """
        Feed one event to the user's active interaction.

        A received label does not clear the slot by itself: the caller
        persists the bill first and then calls clear(), so a failed
        write leaves the user able to resend the label.
        """
        state = self._states.get(user_id)
        if state is None:
            return TrackerResult(outcome=TrackerOutcome.IDLE)

        if state.step == InteractionStep.AWAITING_PHOTO and event.has_photo:
            file_id = event.largest_photo.file_id
            self._states[user_id] = InteractionState.awaiting_label(file_id)
            return TrackerResult(outcome=TrackerOutcome.PHOTO_CAPTURED, file_id=file_id)

        if state.step == InteractionStep.AWAITING_LABEL and event.has_text:
            return TrackerResult(
                outcome=TrackerOutcome.LABEL_RECEIVED,
                file_id=state.file_id,
                label=event.text,
            )

        return TrackerResult(outcome=TrackerOutcome.DROPPED)

    def clear(self, user_id: str) -> None:
        """Return the user to idle (bill saved, logout, or abandoned)."""
        self._states.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._states)
