"""
Core Data Models for Expense Assistant

These models define the schemas for everything flowing through the
conversation core:
1. Persisted ledger records (UserRecord, ExpenseEntry, BillEntry)
2. Transient interaction state (bill capture workflow)
3. Transport-neutral inbound events and outbound replies
4. Report digests

DESIGN DECISION: Persisted field names keep the camelCase keys of the
original expenses.json layout (dailyLimit, fileId) through aliases.
Python code uses snake_case; storage dumps with by_alias=True.
"""

import math
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


DEFAULT_ITEM = "Misc"


def decimal_to_number(value: Decimal) -> int | float | str:
    """
    Render a Decimal for JSON storage without losing any digits.

    Integral values become ints and other values become floats when the
    float reads back as the same Decimal. Anything a float cannot hold
    exactly is written as a string, which the Decimal fields accept on load.
    """
    if value == value.to_integral_value():
        return int(value)
    as_float = float(value)
    if math.isfinite(as_float) and Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class ExpenseEntry(BaseModel):
    """
    A single logged expense.

    Immutable once appended. `date` is the calendar-day string in the
    configured timezone and `month` is 0-based (January == 0).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    amount: Decimal = Field(
        ...,
        description="Amount spent"
    )
    item: str = Field(
        default=DEFAULT_ITEM,
        description="What the money was spent on"
    )
    date: str = Field(
        ...,
        min_length=1,
        description="Calendar day the entry was received on"
    )
    month: int = Field(
        ...,
        ge=0,
        le=11,
        description="0-based month the entry was received in"
    )

    @field_validator('amount')
    @classmethod
    def validate_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @field_validator('item', mode='before')
    @classmethod
    def default_empty_item(cls, v: Optional[str]) -> str:
        if v is None or not str(v).strip():
            return DEFAULT_ITEM
        return v

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> int | float | str:
        return decimal_to_number(v)


class BillEntry(BaseModel):
    """A photographed receipt stored in the user's vault."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    label: str = Field(
        ...,
        description="What the bill is for, as typed by the user"
    )
    file_id: str = Field(
        ...,
        alias="fileId",
        min_length=1,
        description="Opaque transport reference of the stored photo"
    )
    date: str = Field(
        ...,
        min_length=1,
        description="Calendar day the bill was saved on"
    )


class UserRecord(BaseModel):
    """
    Everything persisted for one chat identity.

    An absent record is equivalent to UserRecord() - records are created
    on first write and never deleted.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    authorized: bool = Field(
        default=False,
        description="Has this identity supplied the access code?"
    )
    daily_limit: Decimal = Field(
        default=Decimal(0),
        alias="dailyLimit",
        description="Daily spending limit; 0 or less means no limit"
    )
    logs: list[ExpenseEntry] = Field(
        default_factory=list,
        description="Expense entries in chronological (insertion) order"
    )
    vault: list[BillEntry] = Field(
        default_factory=list,
        description="Saved bills in chronological (insertion) order"
    )

    @field_validator('daily_limit')
    @classmethod
    def validate_finite_limit(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Daily limit must be a finite number")
        return v

    @field_serializer('daily_limit', when_used='json')
    def serialize_limit(self, v: Decimal) -> int | float | str:
        return decimal_to_number(v)

    @property
    def has_limit(self) -> bool:
        return self.daily_limit > 0

    def logs_for(self, day: str) -> list[ExpenseEntry]:
        """Entries stamped with the given calendar day, in insertion order."""
        return [entry for entry in self.logs if entry.date == day]

    def to_storage_dict(self) -> dict:
        """Serialize with the persisted (camelCase) key names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# INTERACTION STATE (transient, never persisted)
# =============================================================================

class InteractionStep(str, Enum):
    """Steps of the bill capture workflow."""
    AWAITING_PHOTO = "awaiting_photo"
    AWAITING_LABEL = "awaiting_label"


class InteractionState(BaseModel):
    """
    Where a user is inside a multi-step input.

    Absence of a state means the user is idle.
    """
    model_config = ConfigDict(frozen=True)

    step: InteractionStep
    file_id: Optional[str] = None

    @model_validator(mode='after')
    def validate_step_payload(self) -> 'InteractionState':
        if self.step == InteractionStep.AWAITING_LABEL and not self.file_id:
            raise ValueError("A captured photo reference is required to await a label")
        if self.step == InteractionStep.AWAITING_PHOTO and self.file_id:
            raise ValueError("No photo can be captured before one is requested")
        return self

    @classmethod
    def awaiting_photo(cls) -> 'InteractionState':
        return cls(step=InteractionStep.AWAITING_PHOTO)

    @classmethod
    def awaiting_label(cls, file_id: str) -> 'InteractionState':
        return cls(step=InteractionStep.AWAITING_LABEL, file_id=file_id)


# =============================================================================
# TRANSPORT-NEUTRAL EVENTS AND REPLIES
# =============================================================================

class PhotoSize(BaseModel):
    """One resolution of an incoming photo."""
    model_config = ConfigDict(frozen=True)

    file_id: str = Field(..., min_length=1)
    width: int = 0
    height: int = 0


class IncomingEvent(BaseModel):
    """
    One inbound chat event.

    The core only looks at the sender identity and the two payload kinds.
    `photo` lists the available resolutions from smallest to largest.
    """
    model_config = ConfigDict(frozen=True)

    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    text: Optional[str] = None
    photo: list[PhotoSize] = Field(default_factory=list)

    @field_validator('sender_id', mode='before')
    @classmethod
    def coerce_sender_id(cls, v):
        if v is None:
            return None
        return str(v)

    @property
    def has_photo(self) -> bool:
        return bool(self.photo)

    @property
    def has_text(self) -> bool:
        return self.text is not None

    @property
    def largest_photo(self) -> Optional[PhotoSize]:
        return self.photo[-1] if self.photo else None


class ReplyKind(str, Enum):
    TEXT = "text"
    PHOTO = "photo"


class Reply(BaseModel):
    """
    One outbound message for the sender of the event being handled.

    For PHOTO replies `text` is the caption.
    """
    model_config = ConfigDict(frozen=True)

    kind: ReplyKind = ReplyKind.TEXT
    text: str = ""
    file_id: Optional[str] = None
    markdown: bool = False

    @model_validator(mode='after')
    def validate_photo_reference(self) -> 'Reply':
        if self.kind == ReplyKind.PHOTO and not self.file_id:
            raise ValueError("Photo replies need a file reference")
        return self

    @classmethod
    def text_message(cls, text: str, markdown: bool = False) -> 'Reply':
        return cls(kind=ReplyKind.TEXT, text=text, markdown=markdown)

    @classmethod
    def photo_message(cls, file_id: str, caption: str = "", markdown: bool = True) -> 'Reply':
        return cls(kind=ReplyKind.PHOTO, file_id=file_id, text=caption, markdown=markdown)


# =============================================================================
# REPORTS
# =============================================================================

class Cadence(str, Enum):
    """Scheduled report cadences."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Digest(BaseModel):
    """Report text addressed to one recipient."""
    model_config = ConfigDict(frozen=True)

    recipient_id: str
    cadence: Cadence
    text: str
