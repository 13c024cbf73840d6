"""
Core Data Models for Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the transaction invariants at runtime
2. Provide clear validation error messages
3. Be serializable for storage, export and logging

DESIGN DECISION: Field names are snake_case in Python but serialize with
camelCase aliases (createdAt, userId). Exported JSON files therefore keep
the same shape the web client has always written, so old backups import.
"""

import random
import re
import time
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS & CATEGORY LISTS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow. Closed set."""
    INCOME = "income"
    EXPENSE = "expense"


# Suggested categories shown by the entry form.
# NOTE: These are suggestions only. The data layer accepts any category text.
EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Entertainment",
    "Shopping",
    "Bills & Utilities",
    "Healthcare",
    "Education",
    "Travel",
    "Groceries",
    "Other",
)

INCOME_CATEGORIES: tuple[str, ...] = (
    "Salary",
    "Freelance",
    "Business",
    "Investment",
    "Gift",
    "Bonus",
    "Other",
)

DEFAULT_CATEGORY = "Other"

# Sentinel used by the list filters to mean "no filtering"
ALL = "all"

_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def parse_iso_date(text: str) -> date:
    """
    Parse a zero-padded YYYY-MM-DD date.

    Stricter than date.fromisoformat, which also accepts forms like 20240105.
    """
    if not _ISO_DATE_RE.fullmatch(text):
        raise ValueError(f"Date must be in YYYY-MM-DD format, got {text!r}")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Not a calendar date: {text!r}")


def categories_for(transaction_type: "TransactionType | str") -> tuple[str, ...]:
    """Return the suggested category list for a transaction type."""
    if TransactionType(transaction_type) == TransactionType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    One income or expense record owned by a user.

    The id is opaque: either assigned by the store, or synthesized locally
    (imports, generate_id) until the store assigns a durable one.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Free text, never blank"
    )
    amount: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Positive amount, currency-agnostic"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Free-text grouping label"
    )
    date: str = Field(
        ...,
        description="Business date as YYYY-MM-DD"
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="Insertion timestamp (not the business date)"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Owning account identifier"
    )

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Dates must be zero-padded YYYY-MM-DD so string comparison orders them."""
        parse_iso_date(v)
        return v

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    def to_document(self) -> dict:
        """
        Convert to the stored/exported document shape.

        camelCase keys, enum values as plain strings, unset optionals dropped.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TransactionFormData(BaseModel):
    """
    Raw manual-entry payload, exactly as typed into the form.

    NOT validated on construction: validate_transaction_form reports
    every problem at once so the form can show them together.
    """

    type: TransactionType = TransactionType.EXPENSE
    description: str = ""
    amount: str = ""
    category: str = ""
    date: str = ""


# =============================================================================
# DERIVED VIEW MODELS (never persisted)
# =============================================================================

class TransactionSummary(BaseModel):
    """Totals across a transaction list."""

    total_income: float = 0.0
    total_expenses: float = 0.0
    net_income: float = 0.0
    transaction_count: int = Field(default=0, ge=0)


class CategoryData(BaseModel):
    """Aggregate for one category within a type partition."""

    name: str
    amount: float
    count: int = Field(ge=0)
    percentage: float = Field(
        ge=0,
        description="Share of the partition total, 0-100"
    )


# =============================================================================
# ID GENERATION
# =============================================================================

def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_id() -> str:
    """
    Create a client-side id for a record that has no store id yet.

    Epoch milliseconds in base 36 followed by a random base-36 suffix.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(random.choice(_BASE36_DIGITS) for _ in range(9))
    return f"{_to_base36(millis)}{suffix}"


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on a form submission."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a form submission.

    Errors block the submission. Warnings are shown but never block.
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
