"""
Audit Logger

DESIGN DECISION: Every mutation of a user's ledger is logged.
This provides:
1. Traceability of adds, edits, deletes and imports
2. Debugging capability when the store rejects an operation
3. A history the user can look back on

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events (e.g. one import)
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder
from src.models.transaction import Transaction
from src.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Configure structlog on top of stdlib logging.

    JSON lines by default; colourless console output when ``debug`` is set.
    """
    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if debug
        else structlog.processors.JSONRenderer()
    )
    logging.basicConfig(format="%(message)s", level=level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_created(
            user_id=transaction.user_id,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=transaction.amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        user_id: str,
        transaction_id: str,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            user_id=user_id,
            transaction_id=transaction_id,
        ))

    async def log_transaction_deleted(
        self,
        user_id: str,
        transaction_id: str,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            user_id=user_id,
            transaction_id=transaction_id,
        ))

    async def log_validation_failed(
        self,
        user_id: str,
        errors: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            errors=errors,
        ))

    async def log_import_completed(
        self,
        user_id: str,
        filename: str,
        imported_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log the end of a successful import."""
        await self.log(AuditEventBuilder.import_completed(
            user_id=user_id,
            filename=filename,
            imported_count=imported_count,
            correlation_id=correlation_id,
        ))

    async def log_import_failed(
        self,
        user_id: str,
        filename: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.import_failed(
            user_id=user_id,
            filename=filename,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_export_generated(
        self,
        user_id: str,
        filename: str,
        transaction_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.export_generated(
            user_id=user_id,
            filename=filename,
            transaction_count=transaction_count,
        ))

    async def log_storage_error(
        self,
        user_id: Optional[str],
        operation: str,
        error_message: str,
        transaction_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store operation."""
        await self.log(AuditEventBuilder.storage_error(
            user_id=user_id,
            operation=operation,
            error_message=error_message,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step user action (e.g. an import).
    """
    return uuid4()
