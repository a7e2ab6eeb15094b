"""
In-Memory Storage Implementation

Used by the test suite and for local experiments. Nothing survives a
process restart.
"""

from typing import Optional

from expense_assistant.models.ledger import UserRecord
from expense_assistant.services.storage.interface import LedgerStoreInterface


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Dict-backed ledger store.

    Records are deep-copied on the way in and out so callers can only
    change stored state through set().
    """

    def __init__(self, records: Optional[dict[str, UserRecord]] = None):
        self._records: dict[str, UserRecord] = {}
        for user_id, record in (records or {}).items():
            self._records[str(user_id)] = record.model_copy(deep=True)

    async def get(self, user_id: str) -> Optional[UserRecord]:
        record = self._records.get(user_id)
        return record.model_copy(deep=True) if record is not None else None

    async def set(self, user_id: str, record: UserRecord) -> None:
        self._records[user_id] = record.model_copy(deep=True)

    async def get_all(self) -> dict[str, UserRecord]:
        return {
            user_id: record.model_copy(deep=True)
            for user_id, record in self._records.items()
        }
