"""Sales forecast schemas."""

from datetime import date
from typing import List

from pydantic import BaseModel, Field, field_validator

from coffeeos.schemas.common import ApiModel


class HistoricalSale(BaseModel):
    date: str
    sales: float = Field(..., ge=0)

    @field_validator("date")
    @classmethod
    def iso_calendar_date(cls, v: str) -> str:
        try:
            date.fromisoformat(v)
        except ValueError:
            raise ValueError("date must be an ISO calendar date (YYYY-MM-DD)")
        return v

    @field_validator("sales", mode="before")
    @classmethod
    def reject_bool(cls, v):
        if isinstance(v, bool):
            raise ValueError("sales must be a number")
        return v


class PredictedSale(BaseModel):
    date: str
    predictedSales: float


class ForecastRequest(ApiModel):
    historical_sales_data: List[HistoricalSale] = Field(..., min_length=1)
    forecast_days: int = Field(..., ge=1, le=365)


class ForecastResult(BaseModel):
    predictedSales: List[PredictedSale]
    summary: str
