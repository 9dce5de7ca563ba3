"""AI sales forecasting route."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from coffeeos.core.config import get_settings
from coffeeos.core.rate_limit import limiter
from coffeeos.schemas.forecast import ForecastRequest, ForecastResult
from coffeeos.services.forecast import ForecastOracle, GeminiForecastOracle, forecast_sales

logger = logging.getLogger(__name__)

router = APIRouter()


def get_forecast_oracle() -> ForecastOracle:
    return GeminiForecastOracle.from_settings(get_settings())


@router.post("/sales", response_model=ForecastResult)
@limiter.limit("10/minute")
async def forecast_sales_endpoint(
    request: Request,
    body: ForecastRequest,
    oracle: ForecastOracle = Depends(get_forecast_oracle),
):
    """
    Forecast daily sales from historical data.

    502 when the forecast service is unreachable or returns unusable data.
    """
    try:
        return await forecast_sales(body.historical_sales_data, body.forecast_days, oracle=oracle)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
