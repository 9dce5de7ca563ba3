"""Forecast Response Normalizer.

The oracle answers with a serialized series. Each element must carry a
string ``date`` and a number under ``sales`` or ``predictedSales``; ``sales``
is renamed to ``predictedSales`` (and wins when both are present). Input order
is kept. Anything else rejects the whole response; there is no partial
result.
"""

import json
import math
from numbers import Real
from typing import Any, Dict, List, Mapping

from coffeeos.core.errors import MalformedForecast
from coffeeos.schemas.forecast import ForecastResult, PredictedSale


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # integers beyond the float range
        return False


def _normalize_entry(index: int, entry: Any) -> Dict[str, Any]:
    if not isinstance(entry, Mapping):
        raise MalformedForecast(f"Forecast entry {index} is not an object")

    day = entry.get("date")
    if not isinstance(day, str):
        raise MalformedForecast(f"Forecast entry {index} has no date string")

    if "sales" in entry:
        value = entry["sales"]
    elif "predictedSales" in entry:
        value = entry["predictedSales"]
    else:
        raise MalformedForecast(f"Forecast entry {index} ({day}) has no sales value")

    if not _is_number(value):
        raise MalformedForecast(f"Forecast entry {index} ({day}) sales value is not a number")

    return {"date": day, "predictedSales": value}


def normalize_predicted_sales(raw: str) -> List[Dict[str, Any]]:
    """Decode and normalize the oracle's ``predictedSales`` text.

    >>> normalize_predicted_sales('[{"date": "2023-01-01", "sales": 150}]')
    [{'date': '2023-01-01', 'predictedSales': 150}]
    """
    if not isinstance(raw, (str, bytes, bytearray)):
        raise MalformedForecast("Forecast data is not text")
    try:
        decoded = json.loads(raw)
    except ValueError as e:
        raise MalformedForecast(f"Forecast data is not valid JSON: {e}") from e

    if not isinstance(decoded, list):
        raise MalformedForecast("Forecast data is not a list of days")

    return [_normalize_entry(i, entry) for i, entry in enumerate(decoded)]


def normalize_forecast_result(raw: Mapping[str, Any]) -> ForecastResult:
    """Validate a full oracle response into a ``ForecastResult``."""
    if not isinstance(raw, Mapping):
        raise MalformedForecast("Forecast response is not an object")
    summary = raw.get("summary")
    if not isinstance(summary, str):
        raise MalformedForecast("Forecast response has no summary text")

    points = normalize_predicted_sales(raw.get("predictedSales"))
    return ForecastResult(
        predictedSales=[PredictedSale(**point) for point in points],
        summary=summary,
    )
