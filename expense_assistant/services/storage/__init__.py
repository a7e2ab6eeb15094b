"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger storage.
The JSON file backend is the default; Google Sheets is available for
deployments without a persistent disk.
"""

from expense_assistant.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    StorageError,
)
from expense_assistant.services.storage.json_file import JsonFileLedgerStore
from expense_assistant.services.storage.memory import InMemoryLedgerStore
from expense_assistant.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStoreInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Local implementations
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
]
