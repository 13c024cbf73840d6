"""
Snapshot Cache

Keeps the last transaction snapshot seen by the dashboard in a local JSON
file (the same format as the JSON export), so the figures can be shown
before the store answers.

The cache is a convenience only: read and write failures are logged and
never interrupt the caller.
"""

from pathlib import Path
from typing import Iterable

import structlog

from src.interchange import InterchangeError, export_transactions_to_json, parse_json_transactions
from src.models.transaction import Transaction


class SnapshotCache:
    """Last-seen snapshot persisted to one JSON file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._logger = structlog.get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, transactions: Iterable[Transaction]) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                export_transactions_to_json(transactions),
                encoding="utf-8",
            )
            return True
        except OSError as e:
            self._logger.error("snapshot_cache_save_failed", path=str(self._path), error=str(e))
            return False

    def load(self) -> list[Transaction]:
        if not self._path.exists():
            return []
        try:
            return parse_json_transactions(self._path.read_text(encoding="utf-8"))
        except (OSError, InterchangeError) as e:
            self._logger.error("snapshot_cache_load_failed", path=str(self._path), error=str(e))
            return []

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
