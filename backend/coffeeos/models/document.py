"""Document rows backing the sql document store."""

from typing import Any, Dict

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from coffeeos.db.base import Base, TimestampMixin, VersionMixin
from coffeeos.models.validators import validate_dict, validate_document_path


class StoredDocument(Base, TimestampMixin, VersionMixin):
    """One document addressed by its slash-separated path.

    ``collection`` is the path of the parent collection, so listing a
    collection is an indexed equality lookup.
    """

    __tablename__ = "documents"

    path: Mapped[str] = mapped_column(String(500), primary_key=True)
    collection: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    doc_id: Mapped[str] = mapped_column(String(200), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    @validates("path")
    def _validate_path(self, key, value):
        return validate_document_path(key, value)

    @validates("data")
    def _validate_data(self, key, value):
        return validate_dict(key, value)
