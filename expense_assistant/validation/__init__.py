"""Input grammar package."""

from expense_assistant.validation.parser import (
    COMMAND_PREFIX,
    Command,
    ExpenseInput,
    ParsedCommand,
    parse_amount,
    parse_bill_index,
    parse_command,
    parse_expense,
)

__all__ = [
    "COMMAND_PREFIX",
    "Command",
    "ExpenseInput",
    "ParsedCommand",
    "parse_amount",
    "parse_bill_index",
    "parse_command",
    "parse_expense",
]
