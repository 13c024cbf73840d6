"""
Flow tests for the ledger and the dashboard.

Run against the in-memory store; the audit trail is checked through the
in-memory audit storage.
"""

import asyncio
import json

import pytest

from src.audit import AuditLogger
from src.config import AppSettings
from src.interchange import ExportFormat, ImportFormatError, export_transactions_to_json
from src.models.audit import AuditEventType
from src.models.transaction import Transaction, TransactionFormData, TransactionType
from src.orchestrator import (
    NotAuthenticatedError,
    TransactionDashboard,
    TransactionLedger,
    create_app_components,
    create_snapshot_cache,
)
from src.services.cache import SnapshotCache
from src.services.storage import (
    InMemoryAuditStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    StorageError,
)


VALID_FORM = {
    "type": "expense",
    "description": "Coffee",
    "amount": "3.50",
    "category": "Food & Dining",
    "date": "2024-01-05",
}


def _ledger(storage=None, user_id="u1", **settings):
    storage = storage or InMemoryTransactionStorage()
    audit_storage = InMemoryAuditStorage()
    ledger = TransactionLedger(
        storage,
        user_id,
        audit_logger=AuditLogger(audit_storage),
        settings=AppSettings(**settings),
    )
    return ledger, storage, audit_storage


def _event_types(audit_storage):
    return [e.event_type for e in audit_storage.events]


class BrokenStorage(InMemoryTransactionStorage):
    """Store whose mutations always fail."""

    async def add_transaction(self, transaction):
        raise StorageError("write rejected")

    async def delete_transaction(self, transaction_id):
        raise StorageError("write rejected")


class TestTransactionLedger:
    """Tests for the user-scoped ledger."""

    def test_add_valid_form(self):
        ledger, storage, audit = _ledger()

        stored, errors = asyncio.run(ledger.add_transaction(VALID_FORM))

        assert errors == []
        assert stored.user_id == "u1"
        assert stored.amount == 3.5
        assert asyncio.run(storage.list_transactions("u1")) == [stored]
        assert _event_types(audit) == [AuditEventType.TRANSACTION_CREATED]

    def test_add_accepts_form_model(self):
        ledger, _, _ = _ledger()
        form = TransactionFormData(
            type=TransactionType.INCOME,
            description="Salary",
            amount="1000",
            category="Salary",
            date="2024-01-31",
        )
        stored, errors = asyncio.run(ledger.add_transaction(form))
        assert errors == []
        assert stored.is_income

    def test_invalid_form_returns_errors(self):
        ledger, storage, audit = _ledger()

        stored, errors = asyncio.run(ledger.add_transaction({**VALID_FORM, "amount": "0"}))

        assert stored is None
        assert errors == ["Amount must be a valid number greater than 0"]
        assert asyncio.run(storage.list_transactions("u1")) == []
        assert _event_types(audit) == [AuditEventType.VALIDATION_FAILED]

    def test_requires_signed_in_user(self):
        ledger, _, _ = _ledger(user_id=None)
        with pytest.raises(NotAuthenticatedError):
            asyncio.run(ledger.add_transaction(VALID_FORM))
        with pytest.raises(NotAuthenticatedError):
            asyncio.run(ledger.snapshot())

    def test_edit_transaction(self):
        ledger, storage, audit = _ledger()
        stored, _ = asyncio.run(ledger.add_transaction(VALID_FORM))

        asyncio.run(ledger.edit_transaction(stored.model_copy(update={"amount": 4.0})))

        [current] = asyncio.run(ledger.snapshot())
        assert current.amount == 4
        assert _event_types(audit)[-1] == AuditEventType.TRANSACTION_UPDATED

    def test_edit_missing_transaction_is_audited_and_reraised(self):
        ledger, _, audit = _ledger()
        missing = Transaction(
            id="nope", type="expense", description="x",
            amount=1, category="Other", date="2024-01-05",
        )
        with pytest.raises(NotFoundError):
            asyncio.run(ledger.edit_transaction(missing))
        assert _event_types(audit) == [AuditEventType.STORAGE_ERROR]

    def test_delete_transaction(self):
        ledger, _, audit = _ledger()
        stored, _ = asyncio.run(ledger.add_transaction(VALID_FORM))

        assert asyncio.run(ledger.delete_transaction(stored.id)) is True
        assert asyncio.run(ledger.snapshot()) == []
        assert _event_types(audit)[-1] == AuditEventType.TRANSACTION_DELETED

    def test_cannot_delete_another_users_transaction(self):
        storage = InMemoryTransactionStorage()
        alice, _, _ = _ledger(storage=storage, user_id="alice")
        bob, _, bob_audit = _ledger(storage=storage, user_id="bob")
        rent, _ = asyncio.run(alice.add_transaction({**VALID_FORM, "description": "Rent"}))

        with pytest.raises(NotFoundError):
            asyncio.run(bob.delete_transaction(rent.id))

        assert asyncio.run(alice.snapshot()) == [rent]
        assert _event_types(bob_audit) == [AuditEventType.STORAGE_ERROR]

    def test_cannot_edit_another_users_transaction(self):
        storage = InMemoryTransactionStorage()
        alice, _, _ = _ledger(storage=storage, user_id="alice")
        bob, _, bob_audit = _ledger(storage=storage, user_id="bob")
        rent, _ = asyncio.run(alice.add_transaction({**VALID_FORM, "description": "Rent"}))

        with pytest.raises(NotFoundError):
            asyncio.run(bob.edit_transaction(
                rent.model_copy(update={"amount": 1.0, "user_id": "bob"})
            ))

        assert asyncio.run(alice.snapshot()) == [rent]
        assert asyncio.run(bob.snapshot()) == []
        assert _event_types(bob_audit) == [AuditEventType.STORAGE_ERROR]

    def test_edit_keeps_signed_in_owner(self):
        storage = InMemoryTransactionStorage()
        alice, _, _ = _ledger(storage=storage, user_id="alice")
        rent, _ = asyncio.run(alice.add_transaction({**VALID_FORM, "description": "Rent"}))

        asyncio.run(alice.edit_transaction(
            rent.model_copy(update={"amount": 9.0, "user_id": "bob"})
        ))

        [current] = asyncio.run(alice.snapshot())
        assert current.user_id == "alice"
        assert current.amount == 9
        assert asyncio.run(storage.list_transactions("bob")) == []

    def test_store_failures_are_reraised(self):
        ledger, _, audit = _ledger(storage=BrokenStorage())
        with pytest.raises(StorageError):
            asyncio.run(ledger.add_transaction(VALID_FORM))
        with pytest.raises(StorageError):
            asyncio.run(ledger.delete_transaction("any"))
        assert _event_types(audit) == [AuditEventType.STORAGE_ERROR] * 2

    def test_import_csv_stamps_user(self):
        ledger, storage, audit = _ledger(user_id="u9")
        csv_text = (
            "Date,Type,Description,Category,Amount\n"
            "2024-01-05,expense,Tea,Groceries,2\n"
            "2024-01-06,transfer,Move,Other,5\n"
            "2024-01-07,income,Gift,Gift,20\n"
        )

        count = asyncio.run(ledger.import_file("bank.csv", csv_text))

        assert count == 2
        transactions = asyncio.run(storage.list_transactions("u9"))
        assert {t.user_id for t in transactions} == {"u9"}
        assert not any(t.id.startswith("imported-") for t in transactions)
        assert _event_types(audit)[-1] == AuditEventType.IMPORT_COMPLETED

    def test_import_json_gets_new_ids(self):
        source = [
            Transaction(
                id="old-id", type="income", description="Bonus",
                amount=300, category="Bonus", date="2024-02-01", user_id="someone-else",
            ),
        ]
        ledger, storage, _ = _ledger()

        count = asyncio.run(ledger.import_file("backup.json", export_transactions_to_json(source)))

        [tx] = asyncio.run(storage.list_transactions("u1"))
        assert count == 1
        assert tx.id != "old-id"
        assert tx.user_id == "u1"
        assert asyncio.run(storage.list_transactions("someone-else")) == []

    def test_malformed_json_imports_nothing(self):
        ledger, storage, audit = _ledger()
        with pytest.raises(ImportFormatError):
            asyncio.run(ledger.import_file("backup.json", "{not json"))
        assert asyncio.run(storage.list_transactions("u1")) == []
        assert _event_types(audit) == [AuditEventType.IMPORT_FAILED]

    def test_unsupported_extension(self):
        ledger, _, _ = _ledger()
        with pytest.raises(ImportFormatError):
            asyncio.run(ledger.import_file("backup.txt", ""))

    def test_export_uses_settings(self):
        ledger, _, audit = _ledger(export_filename_prefix="my-money", csv_export_decimals=2)
        asyncio.run(ledger.add_transaction(VALID_FORM))

        export = asyncio.run(ledger.export(ExportFormat.CSV))

        assert export.filename.startswith("my-money-")
        assert export.filename.endswith(".csv")
        assert export.content.endswith(",3.50")
        assert export.transaction_count == 1
        assert _event_types(audit)[-1] == AuditEventType.EXPORT_GENERATED

    def test_export_given_transactions(self):
        ledger, _, _ = _ledger()
        stored, _ = asyncio.run(ledger.add_transaction(VALID_FORM))
        asyncio.run(ledger.add_transaction({**VALID_FORM, "description": "Tea"}))

        export = asyncio.run(ledger.export("json", [stored]))

        assert [d["description"] for d in json.loads(export.content)] == ["Coffee"]


class TestTransactionDashboard:
    """Tests for the live-query consumer."""

    def test_summary_follows_store_mutations(self):
        ledger, storage, _ = _ledger()
        dashboard = TransactionDashboard(storage, "u1")
        asyncio.run(dashboard.start())
        assert dashboard.summary.transaction_count == 0

        stored, _ = asyncio.run(ledger.add_transaction(VALID_FORM))
        asyncio.run(ledger.add_transaction({
            **VALID_FORM, "type": "income", "description": "Pay",
            "amount": "100", "category": "Salary",
        }))

        assert dashboard.summary.total_expenses == 3.5
        assert dashboard.summary.total_income == 100
        assert dashboard.summary.net_income == 96.5
        assert [c.name for c in dashboard.expense_categories] == ["Food & Dining"]
        assert dashboard.income_categories[0].percentage == 100

        asyncio.run(ledger.delete_transaction(stored.id))
        assert dashboard.summary.total_expenses == 0
        assert dashboard.expense_categories == []

    def test_stop_ends_updates(self):
        ledger, storage, _ = _ledger()
        dashboard = TransactionDashboard(storage, "u1")
        asyncio.run(dashboard.start())
        dashboard.stop()
        assert not dashboard.is_running

        asyncio.run(ledger.add_transaction(VALID_FORM))
        assert dashboard.transactions == []

    def test_other_users_do_not_leak_in(self):
        storage = InMemoryTransactionStorage()
        other_ledger, _, _ = _ledger(storage=storage, user_id="u2")
        dashboard = TransactionDashboard(storage, "u1")
        asyncio.run(dashboard.start())

        asyncio.run(other_ledger.add_transaction(VALID_FORM))
        assert dashboard.transactions == []

    def test_display_uses_currency_symbol(self):
        ledger, storage, _ = _ledger()
        dashboard = TransactionDashboard(storage, "u1", settings=AppSettings(currency_symbol="$"))
        asyncio.run(dashboard.start())
        asyncio.run(ledger.add_transaction(VALID_FORM))
        asyncio.run(ledger.add_transaction({
            **VALID_FORM, "type": "income", "description": "Pay",
            "amount": "100", "category": "Salary",
        }))

        assert dashboard.display_summary() == {
            "total_income": "$100.00",
            "total_expenses": "$3.50",
            "net_income": "$96.50",
        }
        assert dashboard.display_categories(TransactionType.EXPENSE) == [
            "Food & Dining: $3.50 (100.0%)",
        ]
        assert dashboard.display_categories(TransactionType.INCOME) == [
            "Salary: $100.00 (100.0%)",
        ]

    def test_snapshot_cache_is_written_and_preloaded(self, tmp_path):
        cache = SnapshotCache(tmp_path / "snapshot.json")
        ledger, storage, _ = _ledger()
        dashboard = TransactionDashboard(storage, "u1", cache=cache)
        asyncio.run(dashboard.start())
        stored, _ = asyncio.run(ledger.add_transaction(VALID_FORM))
        dashboard.stop()

        assert cache.load() == [stored]

        class SilentStorage(InMemoryTransactionStorage):
            async def subscribe(self, user_id, callback):
                return lambda: None

        offline = TransactionDashboard(SilentStorage(), "u1", cache=cache)
        asyncio.run(offline.start())
        assert offline.summary.total_expenses == 3.5


class TestFactories:

    def test_create_app_components_in_memory(self):
        storage, audit_logger, sheets_client = create_app_components(use_storage=False)
        assert isinstance(storage, InMemoryTransactionStorage)
        assert isinstance(audit_logger, AuditLogger)
        assert sheets_client is None

    def test_create_snapshot_cache(self, tmp_path):
        assert create_snapshot_cache(AppSettings(snapshot_cache_path=None)) is None
        cache = create_snapshot_cache(AppSettings(snapshot_cache_path=str(tmp_path / "c.json")))
        assert cache.path == tmp_path / "c.json"
