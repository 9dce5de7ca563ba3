"""Document store backed by a relational database.

Each document is a JSON row keyed by its path. Every write compares the
row's version with the one it read (compare-and-swap), and all writes of a
``Transaction`` share one database transaction.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from coffeeos.core.errors import CommitFailure
from coffeeos.db.base import Base
from coffeeos.models.document import StoredDocument
from coffeeos.store.base import (
    DocumentSnapshot,
    DocumentStore,
    StagedWrite,
    Transaction,
    WriteKind,
    sort_snapshots,
    split_path,
)

logger = logging.getLogger(__name__)


def _snapshot(row: StoredDocument) -> DocumentSnapshot:
    return DocumentSnapshot(row.path, dict(row.data), row.version)


class SqlTransaction(Transaction):
    def __init__(self, session_factory: sessionmaker):
        super().__init__()
        self._session_factory = session_factory

    def _apply(self, writes: List[StagedWrite]) -> None:
        session: Session = self._session_factory()
        try:
            for write in writes:
                if write.kind == WriteKind.CREATE:
                    self._create(session, write)
                elif write.kind == WriteKind.DELETE:
                    self._delete(session, write)
                else:
                    self._update(session, write)
            session.commit()
        except CommitFailure:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Document transaction failed: {e}")
            raise CommitFailure(f"Store write failed: {e.__class__.__name__}") from e
        finally:
            session.close()

    @staticmethod
    def _create(session: Session, write: StagedWrite) -> None:
        if session.get(StoredDocument, write.path) is not None:
            raise CommitFailure(f"Document already exists: {write.path}", path=write.path)
        collection, doc_id = split_path(write.path)
        session.add(
            StoredDocument(
                path=write.path,
                collection=collection,
                doc_id=doc_id,
                data=dict(write.fields),
                version=1,
            )
        )
        session.flush()

    @staticmethod
    def _update(session: Session, write: StagedWrite) -> None:
        row = session.get(StoredDocument, write.path, populate_existing=True)
        if row is None:
            raise CommitFailure(f"Document does not exist: {write.path}", path=write.path)
        row.check_version(write.expected_version)

        merged = {**row.data, **write.fields}
        result = session.execute(
            update(StoredDocument)
            .where(StoredDocument.path == write.path, StoredDocument.version == row.version)
            .values(data=merged, version=StoredDocument.version + 1, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise CommitFailure(f"Concurrent modification of {write.path}", path=write.path)

    @staticmethod
    def _delete(session: Session, write: StagedWrite) -> None:
        row = session.get(StoredDocument, write.path, populate_existing=True)
        if row is None:
            raise CommitFailure(f"Document does not exist: {write.path}", path=write.path)
        row.check_version(write.expected_version)

        result = session.execute(
            delete(StoredDocument)
            .where(StoredDocument.path == write.path, StoredDocument.version == row.version)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise CommitFailure(f"Concurrent modification of {write.path}", path=write.path)


class SqlDocumentStore(DocumentStore):
    """Store over any SQLAlchemy database; SQLite for development and tests."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @staticmethod
    def create_schema(engine: Engine) -> None:
        Base.metadata.create_all(bind=engine)

    def get(self, path: str) -> DocumentSnapshot:
        with self._session_factory() as session:
            row = session.get(StoredDocument, path)
            if row is None:
                return DocumentSnapshot(path, None)
            return _snapshot(row)

    def list_collection(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        with self._session_factory() as session:
            rows = session.scalars(
                select(StoredDocument).where(StoredDocument.collection == collection_path)
            ).all()
            snapshots = [_snapshot(row) for row in rows]
        snapshots = sort_snapshots(snapshots, order_by, descending)
        return snapshots[:limit] if limit else snapshots

    def query(
        self,
        collection_path: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        # JSON path filters differ per dialect; filter the collection in Python
        matches = [
            s for s in self.list_collection(collection_path)
            if field_name in s.data and s.data[field_name] == value
        ]
        return matches[:limit] if limit else matches

    def transaction(self) -> SqlTransaction:
        return SqlTransaction(self._session_factory)

    def dump(self) -> Dict[str, Dict[str, Any]]:
        """Every document keyed by path."""
        with self._session_factory() as session:
            rows = session.scalars(select(StoredDocument).order_by(StoredDocument.path)).all()
            return {row.path: dict(row.data) for row in rows}
