"""SQLAlchemy models."""

from coffeeos.models.document import StoredDocument

__all__ = ["StoredDocument"]
