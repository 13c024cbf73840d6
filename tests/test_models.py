"""
Tests for Expense Tracker

Test strategy:
1. Unit tests for individual components (models, engines, validators)
2. Flow tests against the in-memory store and a fake worksheet
3. No real API calls in tests
"""

import re
from datetime import datetime
from uuid import uuid4

import pytest
from pydantic import ValidationError

from src.models.transaction import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    Transaction,
    TransactionFormData,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    generate_id,
    parse_iso_date,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        tx = Transaction(
            id="t1",
            type=TransactionType.EXPENSE,
            description="Coffee",
            amount=3.5,
            category="Food & Dining",
            date="2024-01-05",
            user_id="u1",
        )
        assert tx.is_expense
        assert not tx.is_income
        assert tx.amount == 3.5

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from text fields."""
        tx = Transaction(
            id="t1", type="income", description="  Salary  ",
            amount=100, category=" Salary ", date="2024-01-05",
        )
        assert tx.description == "Salary"
        assert tx.category == "Salary"

    def test_transaction_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        for amount in (0, -5):
            with pytest.raises(ValidationError):
                Transaction(
                    id="t1", type="expense", description="x",
                    amount=amount, category="Other", date="2024-01-05",
                )

    def test_transaction_rejects_nan_amount(self):
        """Test that NaN is not a valid amount."""
        with pytest.raises(ValidationError):
            Transaction(
                id="t1", type="expense", description="x",
                amount=float("nan"), category="Other", date="2024-01-05",
            )

    def test_transaction_rejects_blank_description(self):
        """Test that a whitespace-only description is rejected."""
        with pytest.raises(ValidationError):
            Transaction(
                id="t1", type="expense", description="   ",
                amount=1, category="Other", date="2024-01-05",
            )

    def test_transaction_rejects_unknown_type(self):
        """Test that type is a closed set."""
        with pytest.raises(ValidationError):
            Transaction(
                id="t1", type="transfer", description="x",
                amount=1, category="Other", date="2024-01-05",
            )

    def test_transaction_date_format(self):
        """Test that dates must be zero-padded YYYY-MM-DD."""
        for bad in ("2024-1-5", "20240105", "2024-02-30", "05/01/2024"):
            with pytest.raises(ValidationError):
                Transaction(
                    id="t1", type="expense", description="x",
                    amount=1, category="Other", date=bad,
                )

    def test_transaction_accepts_camel_case_keys(self):
        """Test that documents with camelCase keys validate."""
        tx = Transaction.model_validate({
            "id": "t1",
            "type": "expense",
            "description": "Bus",
            "amount": 2,
            "category": "Transportation",
            "date": "2024-01-05",
            "createdAt": "2024-01-05T10:00:00",
            "userId": "u1",
        })
        assert tx.user_id == "u1"
        assert tx.created_at == datetime(2024, 1, 5, 10, 0, 0)

    def test_to_document_uses_camel_case_and_drops_none(self):
        """Test the stored/exported document shape."""
        tx = Transaction(
            id="t1", type="income", description="Gift",
            amount=20, category="Gift", date="2024-01-05", user_id="u1",
        )
        document = tx.to_document()
        assert document == {
            "id": "t1",
            "type": "income",
            "description": "Gift",
            "amount": 20.0,
            "category": "Gift",
            "date": "2024-01-05",
            "userId": "u1",
        }

    def test_form_data_defaults(self):
        """Test that an empty form defaults to an expense with blank fields."""
        form = TransactionFormData()
        assert form.type == TransactionType.EXPENSE
        assert form.amount == ""


class TestHelpers:
    """Tests for model-level helpers."""

    def test_parse_iso_date(self):
        assert parse_iso_date("2024-02-29").day == 29
        with pytest.raises(ValueError):
            parse_iso_date("2023-02-29")
        with pytest.raises(ValueError):
            parse_iso_date("2024-01-05\n")

    def test_categories_for(self):
        assert categories_for("income") == INCOME_CATEGORIES
        assert categories_for(TransactionType.EXPENSE) == EXPENSE_CATEGORIES
        assert "Other" in INCOME_CATEGORIES and "Other" in EXPENSE_CATEGORIES

    def test_generate_id_format(self):
        """Test that ids are lowercase base-36 text."""
        tx_id = generate_id()
        assert re.fullmatch(r"[0-9a-z]+", tx_id)
        assert len(tx_id) >= 10

    def test_generate_id_is_unique(self):
        ids = {generate_id() for _ in range(500)}
        assert len(ids) == 500


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Transaction added",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            description="Import finished",
            details={"filename": "backup.csv", "imported_count": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "import_completed"
        assert log_dict["details"]["filename"] == "backup.csv"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            description="Transaction deleted",
            user_id="u1",
            entity_id="abc",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "transaction_deleted"  # event_type
        assert row[5] == "abc"  # entity_id
        assert row[10] == "True"  # is_user_action

    def test_audit_event_from_sheets_row(self):
        """Test that a sheets row reads back into the same event."""
        event = AuditEventBuilder.import_failed(
            user_id="u1",
            filename="bad.json",
            error_message="not JSON",
            correlation_id=uuid4(),
        )
        restored = AuditEvent.from_sheets_row(event.to_sheets_row())
        assert restored.event_id == event.event_id
        assert restored.event_type == AuditEventType.IMPORT_FAILED
        assert restored.correlation_id == event.correlation_id
        assert restored.error_message == "not JSON"
        assert restored.details == event.details

    def test_audit_event_builder_transaction_created(self):
        """Test AuditEventBuilder.transaction_created."""
        correlation_id = uuid4()

        event = AuditEventBuilder.transaction_created(
            user_id="u1",
            transaction_id="doc-1",
            transaction_type="expense",
            amount=12.5,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.entity_id == "doc-1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_storage_error(self):
        """Test AuditEventBuilder.storage_error."""
        event = AuditEventBuilder.storage_error(
            user_id="u1",
            operation="delete",
            error_message="quota exceeded",
            transaction_id="doc-1",
        )

        assert event.event_type == AuditEventType.STORAGE_ERROR
        assert event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL)
        assert event.error_message == "quota exceeded"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be a valid number greater than 0",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1
        assert result.error_messages == ["Amount must be a valid number greater than 0"]

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.is_valid is True
        assert result.error_count == 0
        assert result.warnings == ["Date in future"]

    def test_validation_issue_severity_is_restricted(self):
        with pytest.raises(ValidationError):
            ValidationIssue(
                field="date",
                issue_type="x",
                message="x",
                severity="fatal",
            )
