"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the hosted document store without touching the core
2. Use in-memory storage for testing
3. Keep the pure aggregation/interchange code unaware of persistence

The interface mirrors what the web client does against its document
store: add/update/delete by id, a user-scoped query, and a live query
that pushes the full snapshot on every change.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from src.models.audit import AuditEvent
from src.models.transaction import Transaction


SnapshotCallback = Callable[[list[Transaction]], None]
Unsubscribe = Callable[[], None]


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Every query is scoped to one user id. Mutations are keyed by the
    store-assigned document id.
    """

    @abstractmethod
    async def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert a transaction. The store assigns a new id.

        Args:
            transaction: The transaction to insert (its id is ignored)

        Returns:
            The stored transaction, carrying the store-assigned id

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace the stored fields of an existing transaction.

        Raises:
            NotFoundError: If no document has this id
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by id.

        Returns:
            True if a document was deleted, False if none existed
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """
        Look up one transaction by document id, whatever its owner.

        Returns:
            The normalized transaction (its user_id is the stored owner),
            or None if no usable document has this id
        """
        pass

    @abstractmethod
    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """
        All transactions owned by ``user_id``, normalized to the canonical shape.

        Documents that cannot be normalized are skipped.
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        user_id: str,
        callback: SnapshotCallback,
    ) -> Unsubscribe:
        """
        Start a live query for ``user_id``.

        ``callback`` receives the current snapshot immediately and again
        after every change to that user's transactions.

        Returns:
            A function that stops delivery when called
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

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: str | None = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events, newest first.

        Args:
            limit: Maximum number of events to return
            user_id: Only events belonging to this user, when given
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
