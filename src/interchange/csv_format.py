"""
CSV Import/Export

Format: five columns, ``Date,Type,Description,Category,Amount``.
Description and Category are always quoted on export, with embedded
quotes doubled. The header row is optional on import.

DESIGN DECISION: Import is best-effort. A malformed row is logged and
skipped; it never aborts the rest of the file. The caller learns how many
rows made it through from the length of the returned list.

LIMITATION: Parsing is line-oriented. A quoted field containing a newline
is split into two broken rows (and both get skipped).
"""

import math
import time
from typing import Iterable, Optional

import structlog
from pydantic import ValidationError

from src.models.transaction import Transaction, TransactionType
from src.queries.formatting import format_amount


CSV_HEADER = ["Date", "Type", "Description", "Category", "Amount"]

logger = structlog.get_logger(__name__)


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def export_transactions_to_csv(
    transactions: Iterable[Transaction],
    decimals: Optional[int] = None,
) -> str:
    """
    Serialize transactions to CSV text, one row per transaction in input order.

    Amounts use plain number text unless ``decimals`` fixes the precision.
    """
    lines = [",".join(CSV_HEADER)]
    for tx in transactions:
        lines.append(",".join([
            tx.date,
            tx.type.value,
            _quote(tx.description),
            _quote(tx.category),
            format_amount(tx.amount, decimals),
        ]))
    return "\n".join(lines)


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into fields.

    Commas inside double quotes do not split, and ``""`` inside quotes is a
    literal quote. The last field is always emitted, even when empty.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields


def sanitize_text(value: str) -> str:
    """Strip ``&`` characters and surrounding whitespace from imported text."""
    return value.replace("&", "").strip()


def _parse_amount(text: str) -> Optional[float]:
    try:
        amount = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def parse_csv_transactions(
    csv_text: str,
    user_id: Optional[str] = None,
) -> list[Transaction]:
    """
    Parse CSV text into transactions owned by ``user_id``.

    The first non-blank line is treated as a header when it contains the
    word "date" (case-insensitive). Rows are skipped, with a warning, when a
    field is empty, the type is not income/expense, the amount is not a
    positive number, or the record is otherwise invalid (e.g. a bad date).

    Ids have the form ``imported-<epoch millis>-<line index>`` where the
    line index counts every line of the input, blank ones included.
    """
    timestamp = int(time.time() * 1000)

    rows = [
        (index, line.strip())
        for index, line in enumerate(csv_text.split("\n"))
        if line.strip()
    ]
    if not rows:
        return []

    if "date" in rows[0][1].lower():
        rows = rows[1:]

    transactions: list[Transaction] = []
    for index, line in rows:
        fields = parse_csv_line(line)
        date_text, type_text, description, category, amount_text = (fields + [""] * 5)[:5]

        if not all((date_text, type_text, description, category, amount_text)):
            logger.warning("csv_row_skipped", line_index=index, reason="missing_field")
            continue

        normalized_type = type_text.strip().lower()
        if normalized_type not in (TransactionType.INCOME.value, TransactionType.EXPENSE.value):
            logger.warning(
                "csv_row_skipped",
                line_index=index,
                reason="invalid_type",
                value=type_text,
            )
            continue

        amount = _parse_amount(amount_text)
        if amount is None:
            logger.warning(
                "csv_row_skipped",
                line_index=index,
                reason="invalid_amount",
                value=amount_text,
            )
            continue

        try:
            transactions.append(Transaction(
                id=f"imported-{timestamp}-{index}",
                type=normalized_type,
                description=sanitize_text(description),
                category=sanitize_text(category),
                amount=amount,
                date=date_text.strip(),
                user_id=user_id,
            ))
        except ValidationError as e:
            logger.warning(
                "csv_row_skipped",
                line_index=index,
                reason="invalid_record",
                error_count=e.error_count(),
            )

    return transactions
