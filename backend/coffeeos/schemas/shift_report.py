"""Shift report schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from coffeeos.schemas.common import ApiModel, DocumentModel, Money, as_utc, utcnow


class ShiftStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class ShiftReport(DocumentModel):
    id: str
    branch_id: Optional[str] = None
    user_id: str
    username: Optional[str] = None
    status: ShiftStatus = ShiftStatus.CLOSED
    start_time: datetime
    end_time: Optional[datetime] = None
    total_cash_in: Money = Decimal("0")
    total_card_in: Money = Decimal("0")
    total_qr_in: Money = Decimal("0")
    total_revenue: Money = Decimal("0")
    total_transactions: int = 0
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CloseShiftRequest(ApiModel):
    user_id: str
    username: Optional[str] = None
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @model_validator(mode="after")
    def window_order(self) -> "CloseShiftRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self
