"""
In-Memory Storage

Dict-backed implementations of the storage interfaces. Used by the test
suite and for running the service without a configured backend.

Raw documents are kept exactly as given, so legacy-shaped documents can
be seeded and go through the same normalization as the hosted store.
"""

from typing import Any, Mapping, Optional
from uuid import uuid4

from src.models.audit import AuditEvent
from src.models.transaction import Transaction
from src.services.storage.documents import normalize_document
from src.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    SnapshotCallback,
    StorageError,
    TransactionStorageInterface,
    Unsubscribe,
)
from src.services.storage.subscriptions import SnapshotPublisher


def _document_for(transaction: Transaction) -> dict:
    document = transaction.to_document()
    document.pop("id", None)
    return document


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transaction documents in a dict keyed by document id."""

    def __init__(self, documents: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._documents: dict[str, dict] = {
            doc_id: dict(data) for doc_id, data in (documents or {}).items()
        }
        self._publisher = SnapshotPublisher()

    def seed_document(self, doc_id: str, data: Mapping[str, Any]) -> None:
        """Insert a raw document as-is (any shape)."""
        self._documents[doc_id] = dict(data)
        owner = data.get("userId")
        if owner:
            self._publish(owner)

    def _snapshot(self, user_id: str) -> list[Transaction]:
        transactions = []
        for doc_id, data in self._documents.items():
            if data.get("userId") != user_id:
                continue
            transaction = normalize_document(doc_id, data, user_id)
            if transaction is not None:
                transactions.append(transaction)
        return transactions

    def _publish(self, user_id: Optional[str]) -> None:
        if user_id and self._publisher.has_subscribers(user_id):
            self._publisher.publish(user_id, self._snapshot(user_id))

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        if not transaction.user_id:
            raise StorageError("Cannot store a transaction without an owner")

        doc_id = uuid4().hex
        self._documents[doc_id] = _document_for(transaction)
        self._publish(transaction.user_id)
        return transaction.model_copy(update={"id": doc_id})

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        existing = self._documents.get(transaction.id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction.id}")

        previous_owner = existing.get("userId")
        self._documents[transaction.id] = _document_for(transaction)
        self._publish(transaction.user_id)
        if previous_owner != transaction.user_id:
            self._publish(previous_owner)
        return transaction

    async def delete_transaction(self, transaction_id: str) -> bool:
        removed = self._documents.pop(transaction_id, None)
        if removed is None:
            return False
        self._publish(removed.get("userId"))
        return True

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        data = self._documents.get(transaction_id)
        if data is None:
            return None
        return normalize_document(transaction_id, data, data.get("userId") or "")

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        return self._snapshot(user_id)

    async def subscribe(
        self,
        user_id: str,
        callback: SnapshotCallback,
    ) -> Unsubscribe:
        unsubscribe = self._publisher.add(user_id, callback)
        callback(self._snapshot(user_id))
        return unsubscribe


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: str | None = None,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if user_id is None or e.user_id == user_id
        ]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
