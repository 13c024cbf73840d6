"""Live-query fan-out shared by the storage implementations."""

from itertools import count
from typing import Iterable

import structlog

from src.models.transaction import Transaction
from src.services.storage.interface import SnapshotCallback, Unsubscribe


class SnapshotPublisher:
    """
    Keeps the live-query subscribers of a store and pushes snapshots to them.

    A subscriber that raises is logged and skipped; the mutation that
    triggered the push has already been stored and is not undone.
    """

    def __init__(self):
        self._subscribers: dict[int, tuple[str, SnapshotCallback]] = {}
        self._tokens = count()
        self._logger = structlog.get_logger(__name__)

    def add(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        token = next(self._tokens)
        self._subscribers[token] = (user_id, callback)

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    def has_subscribers(self, user_id: str) -> bool:
        return any(owner == user_id for owner, _ in self._subscribers.values())

    def publish(self, user_id: str, snapshot: Iterable[Transaction]) -> None:
        snapshot = list(snapshot)
        for token, (owner, callback) in list(self._subscribers.items()):
            if owner != user_id:
                continue
            try:
                callback(list(snapshot))
            except Exception as e:
                self._logger.error(
                    "snapshot_subscriber_failed",
                    user_id=user_id,
                    subscriber=token,
                    error=str(e),
                )
