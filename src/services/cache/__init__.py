"""Local cache of the last-seen transaction snapshot."""

from src.services.cache.snapshot_cache import SnapshotCache

__all__ = ["SnapshotCache"]
