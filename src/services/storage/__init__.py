"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the hosted backend; the in-memory store backs tests and
local runs. Both are interchangeable behind the interfaces.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    SnapshotCallback,
    StorageError,
    TransactionStorageInterface,
    Unsubscribe,
)
from src.services.storage.documents import (
    LegacyExpenseDocument,
    StoredDocument,
    TransactionDocument,
    classify_document,
    normalize_document,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
)
from src.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SnapshotCallback",
    "TransactionStorageInterface",
    "Unsubscribe",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Document shapes
    "LegacyExpenseDocument",
    "StoredDocument",
    "TransactionDocument",
    "classify_document",
    "normalize_document",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryTransactionStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
]
