"""
Two-Stage Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - REQUIRED FIELDS:
- Description present (after trimming)
- Amount is a number greater than zero
- Category chosen
- Date present
This is the gate every manual entry must pass.

STAGE 2 - SEMANTIC CHECKS:
- Date is a real YYYY-MM-DD calendar date (error)
- Date not too far in the future (warning)
- Amount not absurdly large (warning)
- Category is one of the suggestions for the type (warning)
Stage 2 only runs when stage 1 passes.

IMPORTANT: Every violated rule is reported at once so the form can show
all problems together. Validation never raises and never fixes input.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Union

from src.config import AppSettings, get_settings
from src.models.transaction import (
    Transaction,
    TransactionFormData,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    generate_id,
    parse_iso_date,
)
from src.queries.formatting import format_currency


DESCRIPTION_REQUIRED = "Description is required"
AMOUNT_INVALID = "Amount must be a valid number greater than 0"
CATEGORY_REQUIRED = "Category is required"
DATE_REQUIRED = "Date is required"
DATE_MALFORMED = "Date must be a valid date in YYYY-MM-DD format"

FormInput = Union[TransactionFormData, Mapping[str, Any]]


def _field(data: FormInput, name: str) -> str:
    if isinstance(data, Mapping):
        value = data.get(name)
    else:
        value = getattr(data, name, None)
    if value is None:
        return ""
    if isinstance(value, TransactionType):
        return value.value
    return str(value)


def _parse_amount(text: str) -> Optional[float]:
    """Positive finite number, or None."""
    try:
        amount = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def validate_transaction_form(data: FormInput) -> list[str]:
    """
    Check a manual-entry form and return every error message.

    An empty list means the form is valid.
    """
    errors = []

    if not _field(data, "description").strip():
        errors.append(DESCRIPTION_REQUIRED)

    if _parse_amount(_field(data, "amount")) is None:
        errors.append(AMOUNT_INVALID)

    if not _field(data, "category"):
        errors.append(CATEGORY_REQUIRED)

    if not _field(data, "date"):
        errors.append(DATE_REQUIRED)

    return errors


_FIELD_FOR_MESSAGE = {
    DESCRIPTION_REQUIRED: ("description", "missing"),
    AMOUNT_INVALID: ("amount", "invalid_value"),
    CATEGORY_REQUIRED: ("category", "missing"),
    DATE_REQUIRED: ("date", "missing"),
}


class TransactionFormValidator:
    """
    Validates form submissions through a two-stage pipeline.

    Stage 1: required fields (the same rules as validate_transaction_form)
    Stage 2: semantic checks, driven by AppSettings thresholds
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_required(self, data: FormInput) -> list[ValidationIssue]:
        issues = []
        for message in validate_transaction_form(data):
            field, issue_type = _FIELD_FOR_MESSAGE[message]
            issues.append(ValidationIssue(
                field=field,
                issue_type=issue_type,
                message=message,
                severity="error",
            ))
        return issues

    def _validate_semantic(self, data: FormInput) -> list[ValidationIssue]:
        issues = []
        today = date.today()

        date_text = _field(data, "date").strip()
        try:
            entered = parse_iso_date(date_text)
        except ValueError:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=DATE_MALFORMED,
                severity="error",
            ))
        else:
            max_future = today + timedelta(days=self._settings.future_date_tolerance_days)
            if entered > max_future:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message=f"Date ({date_text}) is in the future",
                    severity="warning",
                ))

        amount = _parse_amount(_field(data, "amount"))
        if amount is not None and amount > self._settings.max_reasonable_amount:
            shown = format_currency(amount, self._settings.currency_symbol)
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({shown}) seems unusually high",
                severity="warning",
            ))

        type_text = _field(data, "type") or TransactionType.EXPENSE.value
        category = _field(data, "category")
        try:
            suggested = categories_for(type_text)
        except ValueError:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Type must be income or expense, got {type_text!r}",
                severity="error",
            ))
        else:
            if category not in suggested:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="unlisted_category",
                    message=f"'{category}' is not a standard {type_text} category",
                    severity="warning",
                ))

        return issues

    def validate(self, data: FormInput) -> ValidationResult:
        """Run both stages and collect every issue found."""
        issues = self._validate_required(data)

        if not issues:
            issues.extend(self._validate_semantic(data))

        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text block listing errors, then warnings."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        if result.has_errors:
            lines.append("Please fix the following:")
            lines.extend(f"  • {message}" for message in result.error_messages)

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please double-check:")
            lines.extend(f"  • {message}" for message in result.warnings)

        return "\n".join(lines)


def form_to_transaction(
    data: FormInput,
    user_id: Optional[str],
    transaction_id: Optional[str] = None,
) -> Transaction:
    """
    Build a Transaction from a form that passed validation.

    The description is trimmed and the amount parsed. The id is a local one
    until the store assigns a durable id.

    Raises:
        pydantic.ValidationError: if the form was not actually valid.
    """
    return Transaction(
        id=transaction_id or generate_id(),
        type=_field(data, "type") or TransactionType.EXPENSE.value,
        description=_field(data, "description").strip(),
        amount=_parse_amount(_field(data, "amount")),
        category=_field(data, "category"),
        date=_field(data, "date").strip(),
        created_at=datetime.utcnow(),
        user_id=user_id,
    )
