"""
Filter, Search and Sort Helpers

These back the transaction list view. All of them are pure: they never
mutate the list they are given and always return a new list.
"""

import locale
from datetime import date
from enum import Enum
from functools import cmp_to_key
from typing import Any, Iterable

from src.models.transaction import ALL, Transaction, TransactionType
from src.queries.formatting import format_amount


# camelCase names used by the web client and the JSON export
_FIELD_ALIASES = {
    "createdAt": "created_at",
    "userId": "user_id",
}


def filter_transactions_by_category(
    transactions: Iterable[Transaction],
    category: str,
) -> list[Transaction]:
    """Exact category match, or everything when ``category`` is ``all``."""
    if category == ALL:
        return list(transactions)
    return [t for t in transactions if t.category == category]


def filter_transactions_by_type(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType | str,
) -> list[Transaction]:
    """Exact type match, or everything when ``transaction_type`` is ``all``."""
    if transaction_type == ALL:
        return list(transactions)
    wanted = TransactionType(transaction_type)
    return [t for t in transactions if t.type == wanted]


def _as_date_text(value: date | str) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return value


def filter_transactions_by_date_range(
    transactions: Iterable[Transaction],
    start_date: date | str,
    end_date: date | str,
) -> list[Transaction]:
    """
    Transactions dated between ``start_date`` and ``end_date``, inclusive.

    Plain string comparison on YYYY-MM-DD. This is only correct because
    the model enforces the zero-padded fixed-width format.
    """
    start = _as_date_text(start_date)
    end = _as_date_text(end_date)
    return [t for t in transactions if start <= t.date <= end]


def search_transactions(
    transactions: Iterable[Transaction],
    term: str,
) -> list[Transaction]:
    """Case-insensitive substring search over description, category and amount."""
    if not term:
        return list(transactions)

    needle = term.lower()
    return [
        t for t in transactions
        if needle in t.description.lower()
        or needle in t.category.lower()
        or needle in format_amount(t.amount).lower()
    ]


def _comparable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _compare_values(a: Any, b: Any) -> int:
    """Three-way comparison. None sorts before everything."""
    a, b = _comparable(a), _comparable(b)

    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1

    numeric = (int, float)
    if (
        isinstance(a, numeric) and isinstance(b, numeric)
        and not isinstance(a, bool) and not isinstance(b, bool)
    ):
        return (a > b) - (a < b)

    if isinstance(a, str) and isinstance(b, str):
        return locale.strcoll(a, b)

    a_text, b_text = str(a), str(b)
    return (a_text > b_text) - (a_text < b_text)


def sort_transactions(
    transactions: Iterable[Transaction],
    field: str,
    direction: str = "asc",
) -> list[Transaction]:
    """
    Sort by any transaction field.

    Missing values come first when ascending and last when descending.
    Numbers compare numerically, text with the current locale's collation,
    anything else by its string form. The sort is stable.
    """
    attribute = _FIELD_ALIASES.get(field, field)
    if attribute not in Transaction.model_fields:
        raise ValueError(f"Unknown transaction field: {field}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Sort direction must be 'asc' or 'desc', got {direction!r}")

    sign = 1 if direction == "asc" else -1

    def compare(left: Transaction, right: Transaction) -> int:
        return sign * _compare_values(
            getattr(left, attribute),
            getattr(right, attribute),
        )

    return sorted(transactions, key=cmp_to_key(compare))


def unique_categories(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct categories in alphabetical order (the list filter's options)."""
    return sorted({t.category for t in transactions})


def apply_list_filters(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType | str = ALL,
    category: str = ALL,
    search_term: str = "",
) -> list[Transaction]:
    """
    The transaction list pipeline: type, category, search, newest date first.
    """
    result = filter_transactions_by_type(transactions, transaction_type)
    result = filter_transactions_by_category(result, category)
    result = search_transactions(result, search_term)
    return sort_transactions(result, "date", "desc")
