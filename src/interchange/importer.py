"""
File-level import/export

Picks the format from the file name and produces the download payload
for exports. The per-format rules live in csv_format and json_format.

DESIGN DECISION: The ``&`` sanitization that CSV import has always done is
applied to JSON imports as well (unless the caller opts out), so both
restore paths produce the same text for the same record. The pure JSON
parser itself never sanitizes, which keeps export -> parse exact.
"""

from datetime import date
from enum import Enum
from pathlib import PurePath
from typing import Iterable, Optional

from pydantic import BaseModel, ValidationError

from src.interchange.csv_format import (
    export_transactions_to_csv,
    parse_csv_transactions,
    sanitize_text,
)
from src.interchange.errors import ImportFormatError
from src.interchange.json_format import (
    export_transactions_to_json,
    parse_json_transactions,
)
from src.models.transaction import Transaction


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


_MIME_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


class ExportFile(BaseModel):
    """A generated export, ready to be offered as a download."""

    filename: str
    mime_type: str
    content: str
    transaction_count: int


def _restamp(
    transaction: Transaction,
    user_id: Optional[str],
    sanitize: bool,
) -> Transaction:
    data = transaction.model_dump()
    if user_id is not None:
        data["user_id"] = user_id
    if sanitize:
        data["description"] = sanitize_text(data["description"])
        data["category"] = sanitize_text(data["category"])
    try:
        return Transaction.model_validate(data)
    except ValidationError as e:
        raise ImportFormatError(
            f"Transaction {transaction.id} is empty after sanitization"
        ) from e


def import_transactions(
    filename: str,
    content: str,
    user_id: Optional[str] = None,
    sanitize_json: bool = True,
) -> list[Transaction]:
    """
    Parse an uploaded backup file into transactions owned by ``user_id``.

    ``.json`` files are all-or-nothing; ``.csv`` files are best-effort.

    Raises:
        ImportFormatError: unsupported file type, or an unusable JSON file.
    """
    suffix = PurePath(filename).suffix.lower()

    if suffix == ".json":
        return [
            _restamp(tx, user_id, sanitize_json)
            for tx in parse_json_transactions(content)
        ]
    if suffix == ".csv":
        return parse_csv_transactions(content, user_id)

    raise ImportFormatError("Please select a JSON or CSV file.")


def build_export(
    transactions: Iterable[Transaction],
    fmt: ExportFormat | str,
    today: Optional[date] = None,
    filename_prefix: str = "expense-tracker",
    csv_decimals: Optional[int] = None,
) -> ExportFile:
    """Render transactions in the requested format with a dated file name."""
    fmt = ExportFormat(fmt)
    transactions = list(transactions)
    today = today or date.today()

    if fmt == ExportFormat.JSON:
        content = export_transactions_to_json(transactions)
    else:
        content = export_transactions_to_csv(transactions, decimals=csv_decimals)

    return ExportFile(
        filename=f"{filename_prefix}-{today.isoformat()}.{fmt.value}",
        mime_type=_MIME_TYPES[fmt],
        content=content,
        transaction_count=len(transactions),
    )
