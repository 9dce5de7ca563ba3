"""Polling subscriptions over a document and its sub-collections.

Push callbacks from the vendor SDK are replaced by an explicit event stream:
each ``poll()`` compares the current versions with those seen last time and
returns the differences. No ordering is guaranteed between two distinct
subscriptions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Sequence

from coffeeos.store.base import ChangeType, DocumentChange, DocumentSnapshot, join_path

if TYPE_CHECKING:
    from coffeeos.store.base import DocumentStore

logger = logging.getLogger(__name__)


class Subscription:
    """Change feed for one document plus selected sub-collections."""

    def __init__(self, store: "DocumentStore", path: str, collections: Sequence[str] = ()):
        self._store = store
        self.path = path
        self.collections = tuple(collections)
        self._seen: Dict[str, Any] = {}
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _current(self) -> Dict[str, DocumentSnapshot]:
        current: Dict[str, DocumentSnapshot] = {}
        snapshot = self._store.get(self.path)
        if snapshot.exists:
            current[snapshot.path] = snapshot
        for name in self.collections:
            for child in self._store.list_collection(join_path(self.path, name)):
                current[child.path] = child
        return current

    def poll(self) -> List[DocumentChange]:
        """Changes since the previous poll; the first poll delivers current state."""
        if self._cancelled:
            return []

        current = self._current()
        changes: List[DocumentChange] = []

        for path, snapshot in current.items():
            if path not in self._seen:
                changes.append(DocumentChange(ChangeType.ADDED, snapshot))
            elif self._seen[path] != snapshot.version:
                changes.append(DocumentChange(ChangeType.MODIFIED, snapshot))

        for path in self._seen:
            if path not in current:
                changes.append(DocumentChange(ChangeType.REMOVED, DocumentSnapshot(path, None)))

        self._seen = {path: snapshot.version for path, snapshot in current.items()}
        return changes

    async def stream(self, interval: float = 1.0) -> AsyncIterator[List[DocumentChange]]:
        """Yield non-empty batches of changes until cancelled."""
        while not self._cancelled:
            changes = await asyncio.to_thread(self.poll)
            if changes:
                logger.debug(f"Subscription {self.path}: {len(changes)} change(s)")
                yield changes
            await asyncio.sleep(interval)
