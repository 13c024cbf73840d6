"""Tests for the local snapshot cache."""

from src.models.transaction import Transaction
from src.services.cache import SnapshotCache


TRANSACTIONS = [
    Transaction(
        id="a1", type="expense", description="Lunch",
        amount=12.5, category="Food & Dining", date="2024-01-03", user_id="u1",
    ),
    Transaction(
        id="a2", type="income", description="Salary",
        amount=1000, category="Salary", date="2024-01-01", user_id="u1",
    ),
]


class TestSnapshotCache:
    """Tests for SnapshotCache."""

    def test_save_then_load(self, tmp_path):
        cache = SnapshotCache(tmp_path / "nested" / "snapshot.json")
        assert cache.save(TRANSACTIONS) is True
        assert cache.load() == TRANSACTIONS

    def test_missing_file_loads_empty(self, tmp_path):
        assert SnapshotCache(tmp_path / "none.json").load() == []

    def test_corrupt_file_loads_empty(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text("{corrupt", encoding="utf-8")
        assert SnapshotCache(path).load() == []

    def test_unwritable_path_reports_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        cache = SnapshotCache(blocker / "snapshot.json")
        assert cache.save(TRANSACTIONS) is False

    def test_clear(self, tmp_path):
        cache = SnapshotCache(tmp_path / "snapshot.json")
        cache.save(TRANSACTIONS)
        cache.clear()
        assert not cache.path.exists()
        cache.clear()
