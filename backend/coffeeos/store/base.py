"""Abstract document store boundary.

The core only talks to a store through this interface: point reads,
collection listing, an equality query with limit, an atomic multi-document
``Transaction`` and a polling ``Subscription``. Paths are slash-separated,
Firestore style: ``branches/{branchId}/orders/{orderId}``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from coffeeos.core.errors import CommitFailure

if TYPE_CHECKING:
    from coffeeos.store.subscription import Subscription


def join_path(*segments: str) -> str:
    """Join path segments, rejecting empty ones."""
    for segment in segments:
        if not segment or "/" in segment:
            raise ValueError(f"Invalid path segment: {segment!r}")
    return "/".join(segments)


def split_path(path: str) -> Tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    collection, _, doc_id = path.rpartition("/")
    if not collection or not doc_id:
        raise ValueError(f"Not a document path: {path!r}")
    return collection, doc_id


@dataclass(frozen=True)
class DocumentSnapshot:
    """State of one document at read time.

    ``data`` is None when the document does not exist. ``version`` is an
    opaque token (a counter for the sql store, the update time for
    Firestore) used as a write precondition.
    """

    path: str
    data: Optional[Dict[str, Any]]
    version: Any = None

    @property
    def id(self) -> str:
        return split_path(self.path)[1]

    @property
    def collection(self) -> str:
        return split_path(self.path)[0]

    @property
    def exists(self) -> bool:
        return self.data is not None

    def get(self, key: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Document data with its id, as services expect it."""
        return {"id": self.id, **(self.data or {})}


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class DocumentChange:
    type: ChangeType
    snapshot: DocumentSnapshot


class WriteKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class StagedWrite:
    kind: WriteKind
    path: str
    fields: Dict[str, Any] = field(default_factory=dict)
    expected_version: Any = None


class Transaction(ABC):
    """Atomic multi-document write.

    Writes are staged locally and applied together by ``commit()``: either
    every staged write lands or none does. A write staged with
    ``expected_version`` fails the whole commit if the document changed
    since it was read.
    """

    def __init__(self):
        self._writes: List[StagedWrite] = []
        self._committed = False

    @property
    def writes(self) -> Sequence[StagedWrite]:
        return tuple(self._writes)

    def stage(self, path: str, fields: Dict[str, Any], expected_version: Any = None) -> "Transaction":
        """Stage a field update of an existing document."""
        split_path(path)
        self._writes.append(
            StagedWrite(WriteKind.UPDATE, path, dict(fields), expected_version)
        )
        return self

    def create(self, path: str, data: Dict[str, Any]) -> "Transaction":
        """Stage the creation of a document that must not exist yet."""
        split_path(path)
        self._writes.append(StagedWrite(WriteKind.CREATE, path, dict(data)))
        return self

    def delete(self, path: str, expected_version: Any = None) -> "Transaction":
        """Stage the removal of an existing document."""
        split_path(path)
        self._writes.append(StagedWrite(WriteKind.DELETE, path, {}, expected_version))
        return self

    def commit(self) -> None:
        """Apply all staged writes atomically. Raises CommitFailure."""
        if self._committed:
            raise CommitFailure("Transaction already committed")
        if self._writes:
            self._apply(self._writes)
        self._committed = True

    @abstractmethod
    def _apply(self, writes: List[StagedWrite]) -> None:
        """Apply writes in one indivisible store operation."""


def sort_snapshots(
    snapshots: Iterable[DocumentSnapshot],
    order_by: Optional[str] = None,
    descending: bool = False,
) -> List[DocumentSnapshot]:
    """Sort by a field, documents lacking it last; ties by path."""
    snapshots = sorted(snapshots, key=lambda s: s.path)
    if not order_by:
        return snapshots
    present = [s for s in snapshots if s.get(order_by) is not None]
    missing = [s for s in snapshots if s.get(order_by) is None]
    present.sort(key=lambda s: s.get(order_by), reverse=descending)
    return present + missing


class DocumentStore(ABC):
    """Interface every store backend implements."""

    @abstractmethod
    def get(self, path: str) -> DocumentSnapshot:
        """Point read of a single document."""

    @abstractmethod
    def list_collection(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        """All documents directly inside a collection."""

    @abstractmethod
    def query(
        self,
        collection_path: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        """Documents of a collection whose ``field_name`` equals ``value``."""

    @abstractmethod
    def transaction(self) -> Transaction:
        """Start a new atomic write."""

    def subscribe(self, path: str, collections: Sequence[str] = ()) -> "Subscription":
        """Watch a document and the given sub-collections of it."""
        from coffeeos.store.subscription import Subscription

        return Subscription(self, path, collections)
