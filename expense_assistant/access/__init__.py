"""Access control package."""

from expense_assistant.access.gate import AuthorizationGate, GateDecision

__all__ = ["AuthorizationGate", "GateDecision"]
