"""Multi-step interaction tracking package."""

from expense_assistant.interaction.tracker import (
    InteractionStateTracker,
    TrackerOutcome,
    TrackerResult,
)

__all__ = ["InteractionStateTracker", "TrackerOutcome", "TrackerResult"]
