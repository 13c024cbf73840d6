"""Aggregation, filtering and formatting over transaction snapshots."""

from src.queries.aggregation import calculate_transaction_summary, get_category_data
from src.queries.filters import (
    apply_list_filters,
    filter_transactions_by_category,
    filter_transactions_by_date_range,
    filter_transactions_by_type,
    search_transactions,
    sort_transactions,
    unique_categories,
)
from src.queries.formatting import (
    format_amount,
    format_currency,
    format_date,
    format_percentage,
    get_current_date,
)

__all__ = [
    "apply_list_filters",
    "calculate_transaction_summary",
    "filter_transactions_by_category",
    "filter_transactions_by_date_range",
    "filter_transactions_by_type",
    "format_amount",
    "format_currency",
    "format_date",
    "format_percentage",
    "get_category_data",
    "get_current_date",
    "search_transactions",
    "sort_transactions",
    "unique_categories",
]
