"""Cafe table schemas."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import Field

from coffeeos.schemas.common import DocumentModel, utcnow


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    CLEANING = "cleaning"


class CafeTable(DocumentModel):
    id: str
    branch_id: Optional[str] = None
    table_number: str
    zone: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    status: TableStatus = TableStatus.AVAILABLE
    is_active: bool = True
    current_order_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TableStats(DocumentModel):
    total: int
    by_status: Dict[str, int]
    occupancy_rate: float


class ConsistencyViolation(DocumentModel):
    """A broken link between a table and an order."""

    table_id: Optional[str] = None
    order_id: Optional[str] = None
    problem: str
