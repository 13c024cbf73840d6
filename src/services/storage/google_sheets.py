"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted document store because:
1. Users can view and back up their data directly in Sheets
2. No database setup required
3. The owner's Google account already gates access

TRADEOFFS:
- Not suitable for high-volume data (fine for a personal ledger)
- No push notifications (the live query is driven by this adapter's own
  writes, which covers a single running client)
- Limited query capabilities (we filter by user in Python)

Each transaction is one row; the first row holds the column names.
Legacy name/price documents live in the same sheet and are normalized
on read.
"""

from typing import Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import GoogleSheetsSettings, get_settings
from src.models.audit import AUDIT_COLUMNS, AuditEvent
from src.models.transaction import Transaction
from src.queries.formatting import format_amount
from src.services.storage.documents import normalize_document
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    SnapshotCallback,
    StorageError,
    TransactionStorageInterface,
    Unsubscribe,
)
from src.services.storage.subscriptions import SnapshotPublisher


# Column layout of the Transactions sheet.
# name/price are only ever filled on legacy rows.
TRANSACTION_COLUMNS = [
    "id",
    "type",
    "description",
    "amount",
    "category",
    "date",
    "createdAt",
    "userId",
    "name",
    "price",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and retries establishing the connection.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    DESIGN DECISION: Mutations are NOT retried. A failed create/update/delete
    is reported to the caller as a StorageError and the user decides
    whether to try again.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._publisher = SnapshotPublisher()

    @staticmethod
    def _transaction_to_row(doc_id: str, transaction: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            doc_id,
            transaction.type.value,
            transaction.description,
            format_amount(transaction.amount),
            transaction.category,
            transaction.date,
            transaction.created_at.isoformat() if transaction.created_at else "",
            transaction.user_id or "",
            "",
            "",
        ]

    @staticmethod
    def _row_to_document(row: list) -> tuple[str, dict]:
        """Split a row into its document id and the non-empty fields."""
        doc_id = row[0] if row else ""
        data = {
            column: row[index]
            for index, column in enumerate(TRANSACTION_COLUMNS)
            if index > 0 and index < len(row) and row[index] != ""
        }
        return doc_id, data

    def _read_documents(self) -> list[tuple[str, dict]]:
        sheet = self._client.get_transactions_sheet()
        return [
            self._row_to_document(row)
            for row in sheet.get_all_values()[1:]  # Skip header
            if row and row[0]
        ]

    def _snapshot(self, user_id: str) -> list[Transaction]:
        transactions = []
        for doc_id, data in self._read_documents():
            if data.get("userId") != user_id:
                continue
            transaction = normalize_document(doc_id, data, user_id)
            if transaction is not None:
                transactions.append(transaction)
        return transactions

    def _find_row(
        self,
        sheet: gspread.Worksheet,
        doc_id: str,
    ) -> tuple[Optional[int], list]:
        """1-based sheet row number and cells for ``doc_id`` (row 1 is the header)."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == doc_id:
                return idx, row
        return None, []

    def _publish(self, user_id: Optional[str]) -> None:
        if user_id and self._publisher.has_subscribers(user_id):
            self._publisher.publish(user_id, self._snapshot(user_id))

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        """Append a transaction row with a fresh document id."""
        if not transaction.user_id:
            raise StorageError("Cannot store a transaction without an owner")

        doc_id = uuid4().hex
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(
                self._transaction_to_row(doc_id, transaction),
                value_input_option="RAW",
            )
        except Exception as e:
            raise StorageError(f"Failed to add transaction: {e}")

        self._publish(transaction.user_id)
        return transaction.model_copy(update={"id": doc_id})

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """Overwrite the row holding this transaction's id."""
        try:
            sheet = self._client.get_transactions_sheet()
            idx, row = self._find_row(sheet, transaction.id)
            if idx is None:
                raise NotFoundError(f"Transaction not found: {transaction.id}")
            _, previous = self._row_to_document(row)

            sheet.update(
                range_name=f"A{idx}",
                values=[self._transaction_to_row(transaction.id, transaction)],
            )
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

        self._publish(transaction.user_id)
        if previous.get("userId") != transaction.user_id:
            self._publish(previous.get("userId"))
        return transaction

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete the row holding ``transaction_id``."""
        try:
            sheet = self._client.get_transactions_sheet()
            idx, row = self._find_row(sheet, transaction_id)
            if idx is None:
                return False
            _, data = self._row_to_document(row)
            sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

        self._publish(data.get("userId"))
        return True

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """The row holding ``transaction_id``, normalized with its stored owner."""
        try:
            sheet = self._client.get_transactions_sheet()
            idx, row = self._find_row(sheet, transaction_id)
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

        if idx is None:
            return None
        doc_id, data = self._row_to_document(row)
        return normalize_document(doc_id, data, data.get("userId") or "")

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """All rows owned by ``user_id``, normalized."""
        try:
            return self._snapshot(user_id)
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

    async def subscribe(
        self,
        user_id: str,
        callback: SnapshotCallback,
    ) -> Unsubscribe:
        snapshot = await self.list_transactions(user_id)
        unsubscribe = self._publisher.add(user_id, callback)
        callback(snapshot)
        return unsubscribe


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: str | None = None,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                event = AuditEvent.from_sheets_row(row)
            except ValueError:
                continue  # Skip malformed rows
            if user_id is None or event.user_id == user_id:
                events.append(event)

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
