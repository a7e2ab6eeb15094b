"""
Reply Texts

All user-facing strings live here so the router and the report
aggregator stay free of presentation. Texts use Telegram's legacy
Markdown (`*bold*`, `` `code` ``); the transport falls back to plain
text if Telegram rejects the markup.
"""

from decimal import Decimal
from typing import Optional

from expense_assistant.models.ledger import BillEntry, ExpenseEntry


DIVIDER = "━━━━━━━━━━━━━"


def format_amount(amount: Decimal) -> str:
    """Plain decimal rendering without trailing zeros or exponent (250, 12.5)."""
    text = format(amount, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


class ReplyFormatter:
    """Builds reply and report texts for one currency symbol."""

    def __init__(self, currency_symbol: str = "₹"):
        self.currency = currency_symbol

    def money(self, amount: Decimal) -> str:
        return f"{self.currency}{format_amount(amount)}"

    def _item_line(self, entry: ExpenseEntry, indent: str = "") -> str:
        return f"{indent}• {entry.item}: {self.money(entry.amount)}"

    # =========================================================================
    # ACCESS
    # =========================================================================

    def access_granted(self) -> str:
        return "🔓 Access granted. Send /start to see what I can do."

    def not_authorized(self) -> str:
        return "🔒 Not authorized. Send the access code to continue."

    def logged_out(self) -> str:
        return "👋 Logged out. Send the access code to log in again."

    # =========================================================================
    # ONBOARDING
    # =========================================================================

    def welcome(self, name: Optional[str]) -> str:
        name = name or "Operative"
        return (
            f"👋 *Welcome to the Protocol, {name}!*\n\n"
            "I am your *Elite Expense Intelligence* assistant. ⚔️"
        )

    def manual(self) -> str:
        return (
            f"🛠 *System Manual*\n{DIVIDER}\n\n"
            "💰 *Logging:* `[Amount] [Item]`\n"
            "📑 *Commands:*\n"
            "• /stats — Today's briefing\n"
            "• /setlimit [amount] — Set budget\n"
            "• /addbill — Save a receipt\n"
            "• /bills — View stored bills\n"
            "• /clear — Wipe today's data\n"
            "• /logout — Lock this chat"
        )

    # =========================================================================
    # EXPENSES AND LIMITS
    # =========================================================================

    def logged(self, amount: Decimal) -> str:
        return f"✅ Logged: {self.money(amount)}"

    def limit_exceeded(self, today_total: Decimal) -> str:
        return f"🚨 *LIMIT EXCEEDED:* {self.money(today_total)}"

    def limit_warning(self) -> str:
        return "⚠️ *80% BUDGET USED*"

    def setlimit_usage(self) -> str:
        return "❌ Usage: /setlimit 1000"

    def limit_set(self, amount: Decimal) -> str:
        return f"🎯 Limit set to {self.money(amount)}."

    def day_cleared(self) -> str:
        return "🗑️ Today's data wiped."

    def stats(self, day: str, entries: list[ExpenseEntry], total: Decimal) -> str:
        if not entries:
            return f"📊 *Briefing for {day}*\n\nNo records."
        lines = "\n".join(self._item_line(entry) for entry in entries)
        return (
            f"📊 *Briefing for {day}*\n{DIVIDER}\n\n"
            f"{lines}\n"
            f"\n💰 *Total: {self.money(total)}*"
        )

    # =========================================================================
    # BILL VAULT
    # =========================================================================

    def ask_photo(self) -> str:
        return "📸 Send the photo of your bill."

    def ask_label(self) -> str:
        return "📝 What is this bill for?"

    def bill_saved(self) -> str:
        return "✅ Bill Saved!"

    def vault_empty(self) -> str:
        return "📂 Your vault is empty."

    def bill_list(self, bills: list[BillEntry]) -> str:
        lines = "".join(
            f"{position}. {bill.label} ({bill.date})\n"
            for position, bill in enumerate(bills, start=1)
        )
        return (
            f"📂 *Stored Bills*\n{DIVIDER}\n\n"
            f"{lines}"
            "\n*View one:* `/view [number]`"
        )

    def bill_caption(self, bill: BillEntry) -> str:
        return f"📄 *Bill:* {bill.label}\n📅 *Date:* {bill.date}"

    def not_found(self) -> str:
        return "❌ Not found."

    # =========================================================================
    # REPORTS
    # =========================================================================

    def daily_report(self, entries: list[ExpenseEntry], total: Decimal) -> str:
        lines = "\n".join(self._item_line(entry) for entry in entries)
        return f"🌙 *Daily Report*\n\n{lines}\n\n💰 *Total: {self.money(total)}*"

    def weekly_report(self, groups: list[tuple[str, list[ExpenseEntry]]]) -> str:
        text = f"📊 *Weekly Audit*\n{DIVIDER}\n\n"
        for day, entries in groups:
            lines = "\n".join(self._item_line(entry, indent="  ") for entry in entries)
            text += f"📅 *{day}*\n{lines}\n\n"
        return text

    def monthly_report(self, total: Decimal) -> str:
        return (
            "🗓️ *Monthly Intel*\n"
            f"Total spent: *{self.money(total)}*\n"
            "Check /bills for receipts."
        )
