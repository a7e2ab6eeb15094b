"""
Authorization Gate

Every inbound event passes through here first. A chat identity must
send the shared access code once before anything else works:

- text exactly equal to the code  -> GRANTED (the code is never ledger input)
- identity already authorized     -> ALLOWED
- anything else                   -> BLOCKED

The comparison is exact: case-sensitive, no trimming.
"""

import hmac
from enum import Enum
from typing import Optional

from expense_assistant.models.ledger import UserRecord


class GateDecision(str, Enum):
    GRANTED = "granted"
    ALLOWED = "allowed"
    BLOCKED = "blocked"


class AuthorizationGate:
    """Decides whether an event may reach the classifier."""

    def __init__(self, access_code: str):
        if not access_code:
            raise ValueError("An access code is required")
        self._code = access_code.encode("utf-8")

    def is_access_code(self, text: Optional[str]) -> bool:
        if text is None:
            return False
        return hmac.compare_digest(text.encode("utf-8"), self._code)

    def check(self, text: Optional[str], record: UserRecord) -> GateDecision:
        if self.is_access_code(text):
            return GateDecision.GRANTED
        if record.authorized:
            return GateDecision.ALLOWED
        return GateDecision.BLOCKED
