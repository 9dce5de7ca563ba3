"""Shared schema helpers.

Documents keep the camelCase field names of the stored data; models use
snake_case attributes with camelCase aliases, so the same model reads a
document, writes it back and serves it over the API.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from coffeeos.store.base import DocumentSnapshot

CENT = Decimal("0.01")

# Decimal in Python, plain number in documents and JSON responses
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]
Rate = Money

T = TypeVar("T", bound="DocumentModel")


def quantize_money(value) -> Decimal:
    """Round half-up to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DocumentModel(BaseModel):
    """Base for entities stored as documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @classmethod
    def from_snapshot(cls: Type[T], snapshot: DocumentSnapshot) -> T:
        return cls.model_validate(snapshot.to_dict())

    def to_document(self) -> Dict[str, Any]:
        """JSON-safe field map with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ApiModel(BaseModel):
    """Base for request bodies: camelCase or snake_case keys accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
