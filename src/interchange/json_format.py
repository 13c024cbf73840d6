"""
JSON Import/Export

The JSON file is a pretty-printed array of transaction documents, the
same camelCase shape the web client keeps in memory. Export followed by
parse gives back equal Transaction objects.

Unlike CSV import, JSON import is all-or-nothing.
"""

import json
from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from src.interchange.errors import ImportFormatError
from src.models.transaction import Transaction


_TRANSACTION_LIST = TypeAdapter(list[Transaction])


def export_transactions_to_json(transactions: Iterable[Transaction]) -> str:
    """Serialize transactions as a JSON array with 2-space indentation."""
    return json.dumps(
        [tx.to_document() for tx in transactions],
        indent=2,
        ensure_ascii=False,
    )


def parse_json_transactions(text: str) -> list[Transaction]:
    """
    Parse an exported JSON file.

    Raises:
        ImportFormatError: the text is not JSON, not an array, or any
            element is not a valid transaction.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"File is not valid JSON: {e}") from e

    if not isinstance(payload, list):
        raise ImportFormatError("JSON import must be an array of transactions")

    try:
        return _TRANSACTION_LIST.validate_python(payload)
    except ValidationError as e:
        raise ImportFormatError(
            f"JSON contains {e.error_count()} invalid transaction field(s)"
        ) from e
