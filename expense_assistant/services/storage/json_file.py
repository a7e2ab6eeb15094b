"""
JSON File Storage Implementation

DESIGN DECISION: The default backend is a single JSON document mapping
user id to record, the same layout the first version of the bot wrote
to expenses.json:

    {"123456": {"authorized": true, "dailyLimit": 1000,
                "logs": [{"amount": 250, "item": "Coffee",
                          "date": "19/10/2026", "month": 9}],
                "vault": [{"label": "Lunch", "fileId": "AgAD...",
                           "date": "19/10/2026"}]}}

The whole document is cached after the first read and rewritten on
every set(). Writes go to a temporary file that replaces the original,
so a crash mid-write never leaves a truncated ledger behind.

TRADEOFFS:
- One process owns the file; concurrent writers are not supported
- Every write rewrites the whole document (fine for personal use)
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from expense_assistant.models.ledger import UserRecord
from expense_assistant.services.storage.interface import (
    LedgerStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileLedgerStore(LedgerStoreInterface):
    """Ledger store persisted as one JSON document on local disk."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._data: Optional[dict[str, dict]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, dict]:
        """Read the document once; a missing or empty file is an empty ledger."""
        if self._data is not None:
            return self._data

        if not self._path.exists():
            self._data = {}
            return self._data

        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")

        if not content.strip():
            self._data = {}
            return self._data

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Ledger file {self._path} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise StorageError(f"Ledger file {self._path} must contain a JSON object")

        self._data = data
        return self._data

    def _flush(self, data: dict[str, dict]) -> None:
        """Atomically replace the file with the given document."""
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=directory,
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}")

    async def get(self, user_id: str) -> Optional[UserRecord]:
        raw = self._load().get(user_id)
        if raw is None:
            return None
        try:
            return UserRecord.model_validate(raw)
        except ValidationError as e:
            raise StorageError(f"Stored record for {user_id} is malformed: {e}")

    async def set(self, user_id: str, record: UserRecord) -> None:
        data = dict(self._load())
        data[user_id] = record.to_storage_dict()
        self._flush(data)
        self._data = data

    async def get_all(self) -> dict[str, UserRecord]:
        records = {}
        for user_id, raw in self._load().items():
            try:
                records[user_id] = UserRecord.model_validate(raw)
            except ValidationError:
                # Skip malformed records so one bad entry can't stop the reports
                logger.warning("ledger_record_skipped", user_id=user_id)
                continue
        return records
