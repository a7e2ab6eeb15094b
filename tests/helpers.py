"""Builders shared by the test modules."""

from datetime import datetime
from zoneinfo import ZoneInfo

from expense_assistant.models.ledger import IncomingEvent, PhotoSize


ACCESS_CODE = "open-sesame"
USER_ID = "1001"
TZ = ZoneInfo("Asia/Kolkata")


class FixedClock:
    """Clock frozen at a given local time; move it by assigning `current`."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current


def text_event(text: str, sender_id: str = USER_ID, name: str = "Asha") -> IncomingEvent:
    return IncomingEvent(sender_id=sender_id, sender_name=name, text=text)


def photo_event(*file_ids: str, sender_id: str = USER_ID) -> IncomingEvent:
    return IncomingEvent(
        sender_id=sender_id,
        photo=[
            PhotoSize(file_id=file_id, width=90 * (i + 1), height=90 * (i + 1))
            for i, file_id in enumerate(file_ids)
        ],
    )
