"""
Main Orchestrator for the Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Manual entry (form → validate → store → audit)
2. Edit / delete of stored transactions
3. Import / export of backup files
4. The dashboard (live snapshot → summary and category breakdowns)

DESIGN DECISION: The signed-in user and the store are passed in
explicitly. Nothing here reads ambient UI state, so every flow can be
driven from tests with the in-memory store.

Every mutation is audited. Store failures are logged, audited and
re-raised unchanged; they are never retried here.
"""

from typing import Iterable, Optional

import structlog

from src.audit import AuditLogger, configure_logging, create_correlation_id
from src.config import AppSettings, get_settings
from src.interchange import (
    ExportFile,
    ExportFormat,
    ImportFormatError,
    build_export,
    import_transactions,
)
from src.models.transaction import (
    CategoryData,
    Transaction,
    TransactionSummary,
    TransactionType,
)
from src.queries import (
    calculate_transaction_summary,
    format_currency,
    format_percentage,
    get_category_data,
)
from src.services.cache import SnapshotCache
from src.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
    Unsubscribe,
)
from src.validation import (
    TransactionFormValidator,
    form_to_transaction,
)
from src.validation.validator import FormInput


logger = structlog.get_logger(__name__)


class NotAuthenticatedError(Exception):
    """A ledger operation was attempted without a signed-in user."""
    pass


class TransactionLedger:
    """
    User-scoped operations on the transaction store.

    Flow for a manual entry:
    1. Validate the form (errors are returned, never raised)
    2. Build the transaction and stamp the user id
    3. Insert it; the store assigns the durable id
    4. Audit the insert
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        user_id: Optional[str],
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[TransactionFormValidator] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = storage
        self._user_id = user_id
        self._settings = settings or get_settings().app
        self._validator = validator or TransactionFormValidator(self._settings)
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def _require_user(self) -> str:
        if not self._user_id:
            raise NotAuthenticatedError("Sign in to manage transactions")
        return self._user_id

    async def _ensure_owned(self, user_id: str, transaction_id: str) -> None:
        """Another user's document is reported exactly like a missing one."""
        existing = await self._storage.get_transaction(transaction_id)
        if existing is not None and existing.user_id != user_id:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

    async def add_transaction(
        self,
        form: FormInput,
    ) -> tuple[Optional[Transaction], list[str]]:
        """
        Validate a form and store it as a new transaction.

        Returns:
            (stored_transaction, []) on success,
            (None, error_messages) when the form is invalid.

        Raises:
            NotAuthenticatedError: no signed-in user.
            StorageError: the store rejected the insert.
        """
        user_id = self._require_user()

        result = self._validator.validate(form)
        if not result.is_valid:
            errors = result.error_messages
            await self._audit_logger.log_validation_failed(user_id, errors)
            return None, errors

        if result.warnings:
            logger.info("transaction_form_warnings", user_id=user_id, warnings=result.warnings)

        transaction = form_to_transaction(form, user_id)
        try:
            stored = await self._storage.add_transaction(transaction)
        except StorageError as e:
            logger.error("transaction_add_failed", user_id=user_id, error=str(e))
            await self._audit_logger.log_storage_error(user_id, "add", str(e))
            raise

        await self._audit_logger.log_transaction_created(stored)
        return stored, []

    async def edit_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace a stored transaction with the edited copy.

        The edited copy keeps its id and is always owned by the signed-in
        user.

        Raises:
            NotFoundError: no such transaction, or it belongs to another user.
        """
        user_id = self._require_user()
        transaction = transaction.model_copy(update={"user_id": user_id})

        try:
            await self._ensure_owned(user_id, transaction.id)
            updated = await self._storage.update_transaction(transaction)
        except StorageError as e:
            logger.error(
                "transaction_update_failed",
                user_id=user_id,
                transaction_id=transaction.id,
                error=str(e),
            )
            await self._audit_logger.log_storage_error(
                user_id, "update", str(e), transaction_id=transaction.id,
            )
            raise

        await self._audit_logger.log_transaction_updated(user_id, transaction.id)
        return updated

    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete one of the signed-in user's transactions.

        Returns False if no document has this id.

        Raises:
            NotFoundError: the transaction belongs to another user.
        """
        user_id = self._require_user()
        try:
            await self._ensure_owned(user_id, transaction_id)
            deleted = await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            logger.error(
                "transaction_delete_failed",
                user_id=user_id,
                transaction_id=transaction_id,
                error=str(e),
            )
            await self._audit_logger.log_storage_error(
                user_id, "delete", str(e), transaction_id=transaction_id,
            )
            raise

        if deleted:
            await self._audit_logger.log_transaction_deleted(user_id, transaction_id)
        return deleted

    async def import_file(self, filename: str, content: str) -> int:
        """
        Import a JSON or CSV backup into the signed-in user's ledger.

        Every record is stamped with the user id and inserted as a new
        document, so the store assigns durable ids.

        Returns:
            The number of transactions imported.

        Raises:
            ImportFormatError: unsupported file type or unusable JSON.
            StorageError: an insert failed (records before it are kept).
        """
        user_id = self._require_user()
        correlation_id = create_correlation_id()

        try:
            transactions = import_transactions(
                filename,
                content,
                user_id=user_id,
                sanitize_json=self._settings.sanitize_json_imports,
            )
        except ImportFormatError as e:
            await self._audit_logger.log_import_failed(
                user_id, filename, str(e), correlation_id,
            )
            raise

        imported = 0
        for transaction in transactions:
            try:
                stored = await self._storage.add_transaction(transaction)
            except StorageError as e:
                await self._audit_logger.log_storage_error(
                    user_id, "import", str(e),
                    transaction_id=transaction.id,
                    correlation_id=correlation_id,
                )
                await self._audit_logger.log_import_failed(
                    user_id, filename, str(e), correlation_id,
                )
                raise
            await self._audit_logger.log_transaction_created(stored, correlation_id)
            imported += 1

        await self._audit_logger.log_import_completed(
            user_id, filename, imported, correlation_id,
        )
        return imported

    async def export(
        self,
        fmt: ExportFormat | str,
        transactions: Optional[Iterable[Transaction]] = None,
    ) -> ExportFile:
        """
        Build a download of the given transactions (all of the user's by default).
        """
        user_id = self._require_user()
        if transactions is None:
            transactions = await self._storage.list_transactions(user_id)

        export_file = build_export(
            transactions,
            fmt,
            filename_prefix=self._settings.export_filename_prefix,
            csv_decimals=self._settings.csv_export_decimals,
        )
        await self._audit_logger.log_export_generated(
            user_id, export_file.filename, export_file.transaction_count,
        )
        return export_file

    async def snapshot(self) -> list[Transaction]:
        return await self._storage.list_transactions(self._require_user())


class TransactionDashboard:
    """
    Holds the latest snapshot of a user's transactions and the views
    derived from it.

    Each snapshot pushed by the store replaces the previous one; the
    summary and both category breakdowns are recomputed from scratch.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        user_id: str,
        cache: Optional[SnapshotCache] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = storage
        self._user_id = user_id
        self._cache = cache
        self._settings = settings or get_settings().app
        self._unsubscribe: Optional[Unsubscribe] = None

        self.transactions: list[Transaction] = []
        self.summary: TransactionSummary = calculate_transaction_summary([])
        self.expense_categories: list[CategoryData] = []
        self.income_categories: list[CategoryData] = []

    @property
    def is_running(self) -> bool:
        return self._unsubscribe is not None

    def _refresh(self, transactions: list[Transaction]) -> None:
        self.transactions = list(transactions)
        self.summary = calculate_transaction_summary(self.transactions)
        self.expense_categories = get_category_data(self.transactions, TransactionType.EXPENSE)
        self.income_categories = get_category_data(self.transactions, TransactionType.INCOME)

    def _on_snapshot(self, transactions: list[Transaction]) -> None:
        self._refresh(transactions)
        if self._cache is not None:
            self._cache.save(self.transactions)

    async def start(self) -> None:
        """Show the cached snapshot (if any), then follow the live query."""
        if self.is_running:
            return

        if self._cache is not None:
            cached = self._cache.load()
            if cached:
                self._refresh(cached)

        self._unsubscribe = await self._storage.subscribe(self._user_id, self._on_snapshot)
        logger.info("dashboard_started", user_id=self._user_id)

    def display_summary(self) -> dict[str, str]:
        """Summary totals rendered with the configured currency symbol."""
        symbol = self._settings.currency_symbol
        return {
            "total_income": format_currency(self.summary.total_income, symbol),
            "total_expenses": format_currency(self.summary.total_expenses, symbol),
            "net_income": format_currency(self.summary.net_income, symbol),
        }

    def display_categories(self, transaction_type: TransactionType) -> list[str]:
        """One ``name: amount (share)`` line per category, largest first."""
        categories = (
            self.expense_categories
            if transaction_type == TransactionType.EXPENSE
            else self.income_categories
        )
        symbol = self._settings.currency_symbol
        return [
            f"{c.name}: {format_currency(c.amount, symbol)} ({format_percentage(c.percentage)})"
            for c in categories
        ]

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info("dashboard_stopped", user_id=self._user_id)


def create_app_components(
    use_storage: bool = True,
) -> tuple[TransactionStorageInterface, AuditLogger, Optional[GoogleSheetsClient]]:
    """
    Factory function to create the shared application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run against the in-memory store.

    Returns:
        (transaction_storage, audit_logger, sheets_client)

    Ledgers and dashboards are created per signed-in user from these.
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, debug=app_settings.debug_mode)

    sheets_client = None
    transaction_storage: TransactionStorageInterface
    audit_storage: AuditStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            sheets_client.get_spreadsheet()
            transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            transaction_storage = InMemoryTransactionStorage()
            audit_storage = InMemoryAuditStorage()
    else:
        transaction_storage = InMemoryTransactionStorage()
        audit_storage = InMemoryAuditStorage()

    return transaction_storage, AuditLogger(audit_storage), sheets_client


def create_snapshot_cache(settings: Optional[AppSettings] = None) -> Optional[SnapshotCache]:
    """The configured snapshot cache, or None when caching is off."""
    settings = settings or get_settings().app
    if not settings.snapshot_cache_path:
        return None
    return SnapshotCache(settings.snapshot_cache_path)
