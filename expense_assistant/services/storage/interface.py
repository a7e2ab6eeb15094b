"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the original single-file JSON ledger for small deployments
2. Swap in Google Sheets (or a real database) later
3. Use in-memory storage for testing
4. Keep the conversation core decoupled from storage implementation

The interface is intentionally narrow: one record per user id,
read and written whole. The core serializes access per user id, so
implementations only need a write to be visible to the next read.
"""

from abc import ABC, abstractmethod
from typing import Optional

from expense_assistant.models.audit import AuditEvent
from expense_assistant.models.ledger import UserRecord


class LedgerStoreInterface(ABC):
    """
    Abstract interface for per-user ledger records.

    Any storage implementation (JSON file, Google Sheets, etc.)
    must implement these methods. Implementations either complete a
    write before returning or raise StorageError.
    """

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserRecord]:
        """
        Retrieve the record stored for a user.

        Args:
            user_id: Opaque chat identity

        Returns:
            The record if one was ever written, None otherwise

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, user_id: str, record: UserRecord) -> None:
        """
        Replace the record stored for a user (creating it if absent).

        Args:
            user_id: Opaque chat identity
            record: The full record to persist

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_all(self) -> dict[str, UserRecord]:
        """
        Snapshot of every stored record, keyed by user id.

        Returns:
            Mapping of user id to record, in storage order

        Raises:
            StorageError: If the backend cannot be read
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
