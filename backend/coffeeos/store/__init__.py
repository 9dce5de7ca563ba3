# Document store module

import logging

from coffeeos.core.config import Settings
from coffeeos.store.base import (
    ChangeType,
    DocumentChange,
    DocumentSnapshot,
    DocumentStore,
    Transaction,
    join_path,
    split_path,
)
from coffeeos.store.subscription import Subscription

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> DocumentStore:
    """Construct the store backend selected by ``settings.store_backend``."""
    if settings.store_backend == "firestore":
        from coffeeos.store.firestore import FirestoreDocumentStore

        logger.info("Using Firestore document store")
        return FirestoreDocumentStore.from_settings(settings)

    from coffeeos.db.session import create_db_engine, create_session_factory
    from coffeeos.store.sql import SqlDocumentStore

    engine = create_db_engine(settings.database_url)
    SqlDocumentStore.create_schema(engine)
    logger.info("Using sql document store")
    return SqlDocumentStore(create_session_factory(engine))


__all__ = [
    "ChangeType",
    "DocumentChange",
    "DocumentSnapshot",
    "DocumentStore",
    "Subscription",
    "Transaction",
    "build_store",
    "join_path",
    "split_path",
]
