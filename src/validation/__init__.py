"""Form validation package."""

from src.validation.validator import (
    TransactionFormValidator,
    form_to_transaction,
    validate_transaction_form,
)

__all__ = [
    "TransactionFormValidator",
    "form_to_transaction",
    "validate_transaction_form",
]
