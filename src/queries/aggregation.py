"""
Aggregation Engine

Derives summary statistics and per-category breakdowns from a list of
transactions.

DESIGN DECISION: Every function here is pure and synchronous.
The caller hands in a snapshot (usually the latest one pushed by the live
query) and gets fresh view models back. Nothing is cached or persisted,
so re-running on each snapshot is the whole update strategy.

No filtering happens here. Scope the list by user / date range first.
"""

from typing import Iterable

from src.models.transaction import (
    CategoryData,
    Transaction,
    TransactionSummary,
    TransactionType,
)


def calculate_transaction_summary(
    transactions: Iterable[Transaction],
) -> TransactionSummary:
    """
    Total income, total expenses, net income and count.

    transaction_count covers both types. An empty list gives all zeros.
    """
    transactions = list(transactions)

    total_income = sum(
        t.amount for t in transactions if t.type == TransactionType.INCOME
    )
    total_expenses = sum(
        t.amount for t in transactions if t.type == TransactionType.EXPENSE
    )

    return TransactionSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        net_income=total_income - total_expenses,
        transaction_count=len(transactions),
    )


def get_category_data(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType | str,
) -> list[CategoryData]:
    """
    Per-category breakdown of one type partition.

    Categories are grouped by exact string equality (no case folding or
    trimming). Output is sorted by amount, largest first; ties keep the
    order in which the categories were first seen.
    """
    wanted = TransactionType(transaction_type)
    partition = [t for t in transactions if t.type == wanted]
    total = sum(t.amount for t in partition)

    # dicts keep insertion order, which gives the tie-break for free
    buckets: dict[str, dict[str, float]] = {}
    for tx in partition:
        bucket = buckets.setdefault(tx.category, {"amount": 0.0, "count": 0})
        bucket["amount"] += tx.amount
        bucket["count"] += 1

    rows = [
        CategoryData(
            name=name,
            amount=values["amount"],
            count=int(values["count"]),
            percentage=(values["amount"] / total) * 100 if total > 0 else 0.0,
        )
        for name, values in buckets.items()
    ]

    # sorted() is stable, including with reverse=True
    return sorted(rows, key=lambda row: row.amount, reverse=True)
