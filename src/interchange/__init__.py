"""JSON/CSV import and export of transaction lists."""

from src.interchange.csv_format import (
    CSV_HEADER,
    export_transactions_to_csv,
    parse_csv_line,
    parse_csv_transactions,
    sanitize_text,
)
from src.interchange.errors import ImportFormatError, InterchangeError
from src.interchange.importer import (
    ExportFile,
    ExportFormat,
    build_export,
    import_transactions,
)
from src.interchange.json_format import (
    export_transactions_to_json,
    parse_json_transactions,
)

__all__ = [
    "CSV_HEADER",
    "ExportFile",
    "ExportFormat",
    "ImportFormatError",
    "InterchangeError",
    "build_export",
    "export_transactions_to_csv",
    "export_transactions_to_json",
    "import_transactions",
    "parse_csv_line",
    "parse_csv_transactions",
    "parse_json_transactions",
    "sanitize_text",
]
