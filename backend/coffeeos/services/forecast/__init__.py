# Sales forecasting
from coffeeos.services.forecast.normalizer import normalize_forecast_result, normalize_predicted_sales
from coffeeos.services.forecast.oracle import ForecastOracle, GeminiForecastOracle
from coffeeos.services.forecast.service import forecast_sales

__all__ = [
    "ForecastOracle",
    "GeminiForecastOracle",
    "forecast_sales",
    "normalize_forecast_result",
    "normalize_predicted_sales",
]
