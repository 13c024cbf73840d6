"""
Audit Models for Expense Tracker

Every mutation of a user's ledger is logged for audit purposes.
This provides:
1. Traceability of creates, edits, deletes and bulk imports
2. Debugging information when the store rejects an operation
3. A history the user can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Form entry
    VALIDATION_FAILED = "validation_failed"

    # Interchange
    IMPORT_COMPLETED = "import_completed"
    IMPORT_FAILED = "import_failed"
    EXPORT_GENERATED = "export_generated"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context
    user_id: Optional[str] = Field(
        default=None,
        description="Account the event belongs to"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Transaction id the event relates to (store ids are opaque strings)"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all inserts of one import)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Columns follow AUDIT_COLUMNS.
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]

    @classmethod
    def from_sheets_row(cls, row: list) -> "AuditEvent":
        """Inverse of to_sheets_row. Missing trailing cells read as empty."""
        def safe_get(index: int) -> str:
            try:
                return row[index] or ""
            except IndexError:
                return ""

        return cls(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            user_id=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(transaction, correlation_id)
        event = AuditEventBuilder.import_completed(user_id, "bank.csv", 12, correlation_id)
    """

    @staticmethod
    def transaction_created(
        user_id: str,
        transaction_id: str,
        transaction_type: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            user_id=user_id,
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction added: {transaction_type} of {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        user_id: str,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction edited: {transaction_id}",
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        user_id: str,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction deleted: {transaction_id}",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        errors: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Form rejected with {len(errors)} error(s)",
            details={"errors": errors},
            is_user_action=True,
        )

    @staticmethod
    def import_completed(
        user_id: str,
        filename: str,
        imported_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Imported {imported_count} transaction(s) from {filename}",
            details={
                "filename": filename,
                "imported_count": imported_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_failed(
        user_id: str,
        filename: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Import of {filename} failed",
            details={"filename": filename},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def export_generated(
        user_id: str,
        filename: str,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            user_id=user_id,
            description=f"Exported {transaction_count} transaction(s) to {filename}",
            details={
                "filename": filename,
                "transaction_count": transaction_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        user_id: Optional[str],
        operation: str,
        error_message: str,
        transaction_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Store operation failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
