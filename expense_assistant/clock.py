"""
Wall-clock and timezone source.

Entries are stamped with the calendar day and month of one fixed
timezone at the moment they are received. Day strings use the en-IN
locale rendering (D/M/YYYY, no zero padding) the ledger has always
been stored with.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Anything that can tell the current time in the ledger's timezone."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Real time in a fixed IANA timezone."""

    def __init__(self, timezone: str = "Asia/Kolkata"):
        self._tz = ZoneInfo(timezone)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


def day_string(day: date) -> str:
    """Render a date as the ledger's calendar-day key, e.g. 5/3/2026."""
    return f"{day.day}/{day.month}/{day.year}"


def parse_day_string(value: str) -> Optional[date]:
    """Inverse of day_string; None for anything that isn't D/M/YYYY."""
    parts = value.split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def month_index(day: date) -> int:
    """0-based month (January == 0)."""
    return day.month - 1


def is_last_day_of_month(day: date) -> bool:
    """True when tomorrow starts a new calendar month."""
    return (day + timedelta(days=1)).day == 1
