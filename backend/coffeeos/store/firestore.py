"""Cloud Firestore document store via the Firebase Admin SDK.

A ``Transaction`` maps onto a Firestore write batch, which commits
atomically. Version preconditions use the document ``update_time``.
"""

import logging
from typing import Any, List, Optional

from google.api_core import exceptions as google_exceptions

from coffeeos.core.config import Settings
from coffeeos.core.errors import CommitFailure
from coffeeos.store.base import (
    DocumentSnapshot,
    DocumentStore,
    StagedWrite,
    Transaction,
    WriteKind,
)

logger = logging.getLogger(__name__)


def _snapshot(doc) -> DocumentSnapshot:
    path = doc.reference.path
    if not doc.exists:
        return DocumentSnapshot(path, None)
    return DocumentSnapshot(path, doc.to_dict() or {}, doc.update_time)


class FirestoreTransaction(Transaction):
    def __init__(self, client):
        super().__init__()
        self._client = client

    def _apply(self, writes: List[StagedWrite]) -> None:
        batch = self._client.batch()
        for write in writes:
            ref = self._client.document(write.path)
            if write.kind == WriteKind.CREATE:
                batch.create(ref, write.fields)
            elif write.kind == WriteKind.DELETE:
                if write.expected_version is not None:
                    option = self._client.write_option(last_update_time=write.expected_version)
                    batch.delete(ref, option=option)
                else:
                    batch.delete(ref)
            elif write.expected_version is not None:
                option = self._client.write_option(last_update_time=write.expected_version)
                batch.update(ref, write.fields, option=option)
            else:
                batch.update(ref, write.fields)
        try:
            batch.commit()
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Firestore batch commit failed: {e}")
            raise CommitFailure(f"Store write failed: {e.__class__.__name__}") from e


class FirestoreDocumentStore(DocumentStore):
    """Store over a ``google.cloud.firestore.Client``."""

    def __init__(self, client):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirestoreDocumentStore":
        """Initialize the Firebase Admin app once and wrap its Firestore client."""
        import firebase_admin
        from firebase_admin import credentials, firestore

        try:
            app = firebase_admin.get_app()
        except ValueError:
            cred = None
            if settings.firebase_credentials_path:
                cred = credentials.Certificate(settings.firebase_credentials_path)
            options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
            app = firebase_admin.initialize_app(cred, options)
            logger.info("Firebase Admin SDK initialized")
        return cls(firestore.client(app))

    def get(self, path: str) -> DocumentSnapshot:
        return _snapshot(self._client.document(path).get())

    def list_collection(
        self,
        collection_path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        query = self._client.collection(collection_path)
        if order_by:
            query = query.order_by(order_by, direction="DESCENDING" if descending else "ASCENDING")
        if limit:
            query = query.limit(limit)
        return [_snapshot(doc) for doc in query.stream()]

    def query(
        self,
        collection_path: str,
        field_name: str,
        value: Any,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        from google.cloud.firestore_v1.base_query import FieldFilter

        query = self._client.collection(collection_path).where(
            filter=FieldFilter(field_name, "==", value)
        )
        if limit:
            query = query.limit(limit)
        return [_snapshot(doc) for doc in query.stream()]

    def transaction(self) -> FirestoreTransaction:
        return FirestoreTransaction(self._client)
