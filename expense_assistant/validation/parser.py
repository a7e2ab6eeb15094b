"""
Input Grammars

DESIGN DECISION: Every piece of user text is matched against a small,
strict grammar before anything touches a ledger:

- AMOUNT: a plain decimal with an optional sign and a dot separator
  ("250", "12.50", ".5", "-3"). No currency symbols, no thousands
  separators, no exponents, no "Infinity"/"NaN".
- COMMAND: "/" + a known token, optionally addressed to the bot
  ("/stats@MyExpenseBot"). Tokens are case-sensitive.
- EXPENSE: text that does not start with "/" and whose first
  whitespace-delimited token is an AMOUNT; the rest is the item.
- BILL INDEX: a positive 1-based integer written with ASCII digits.

Parsing NEVER guesses. Anything outside the grammar is reported as
None and the caller decides how to reply.
"""

import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_assistant.models.ledger import DEFAULT_ITEM


COMMAND_PREFIX = "/"

_AMOUNT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)", re.ASCII)
_INDEX_RE = re.compile(r"\d+", re.ASCII)


class Command(str, Enum):
    """The command surface, without the prefix."""
    START = "start"
    STATS = "stats"
    SETLIMIT = "setlimit"
    ADDBILL = "addbill"
    BILLS = "bills"
    VIEW = "view"
    CLEAR = "clear"
    LOGOUT = "logout"


class ParsedCommand(BaseModel):
    """A recognised command and its whitespace-separated arguments."""
    model_config = ConfigDict(frozen=True)

    command: Command
    args: list[str] = Field(default_factory=list)

    @property
    def first_arg(self) -> Optional[str]:
        return self.args[0] if self.args else None


class ExpenseInput(BaseModel):
    """Amount and item parsed from free text."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    item: str = DEFAULT_ITEM


def parse_amount(token: Optional[str]) -> Optional[Decimal]:
    """Parse a finite plain decimal, or None."""
    if token is None or not _AMOUNT_RE.fullmatch(token):
        return None
    try:
        return Decimal(token)
    except InvalidOperation:
        return None


def parse_command(text: Optional[str]) -> Optional[ParsedCommand]:
    """Recognise one of the known commands at the start of the text."""
    if not text or not text.startswith(COMMAND_PREFIX):
        return None

    parts = text.split()
    head = parts[0][len(COMMAND_PREFIX):]
    name = head.split("@", 1)[0]

    try:
        command = Command(name)
    except ValueError:
        return None

    return ParsedCommand(command=command, args=parts[1:])


def parse_expense(text: Optional[str]) -> Optional[ExpenseInput]:
    """Parse "[amount] [item]" free text."""
    if not text or text.startswith(COMMAND_PREFIX):
        return None

    parts = text.split(maxsplit=1)
    if not parts:
        return None

    amount = parse_amount(parts[0])
    if amount is None:
        return None

    item = parts[1].strip() if len(parts) > 1 else ""
    return ExpenseInput(amount=amount, item=item or DEFAULT_ITEM)


def parse_bill_index(token: Optional[str]) -> Optional[int]:
    """Parse a 1-based vault position; None for anything that isn't one."""
    if token is None or not _INDEX_RE.fullmatch(token):
        return None
    index = int(token)
    return index if index >= 1 else None
