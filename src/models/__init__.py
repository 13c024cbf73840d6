"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from src.models.transaction import (
    ALL,
    DEFAULT_CATEGORY,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    CategoryData,
    Transaction,
    TransactionFormData,
    TransactionSummary,
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

__all__ = [
    # Transaction models
    "ALL",
    "DEFAULT_CATEGORY",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "CategoryData",
    "Transaction",
    "TransactionFormData",
    "TransactionSummary",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "categories_for",
    "generate_id",
    "parse_iso_date",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
