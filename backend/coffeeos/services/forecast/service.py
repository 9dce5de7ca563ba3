"""Sales forecast use case: validate, ask the oracle, normalize."""

import json
import logging
from typing import List, Optional

from coffeeos.core.config import get_settings
from coffeeos.schemas.forecast import ForecastResult, HistoricalSale
from coffeeos.services.forecast.normalizer import normalize_forecast_result
from coffeeos.services.forecast.oracle import ForecastOracle, GeminiForecastOracle

logger = logging.getLogger(__name__)


async def forecast_sales(
    historical: List[HistoricalSale],
    forecast_days: int,
    oracle: Optional[ForecastOracle] = None,
) -> ForecastResult:
    """
    Forecast daily sales for the next ``forecast_days`` days.

    Raises ValueError for an empty history or a horizon outside 1..365,
    ForecastUnavailable when the oracle cannot answer and MalformedForecast
    when its answer is unusable.
    """
    settings = get_settings()
    if not 1 <= forecast_days <= settings.forecast_max_days:
        raise ValueError(f"forecast_days must be between 1 and {settings.forecast_max_days}")
    if not historical:
        raise ValueError("Historical sales data is required")

    if oracle is None:
        oracle = GeminiForecastOracle.from_settings(settings)

    payload = json.dumps([{"date": h.date, "sales": h.sales} for h in historical])
    logger.info(
        f"Requesting {forecast_days}-day forecast from {oracle.name} "
        f"with {len(historical)} historical day(s)"
    )
    raw = await oracle.forecast(payload, forecast_days)
    result = normalize_forecast_result(raw)
    logger.info(f"Forecast returned {len(result.predictedSales)} day(s)")
    return result
