"""Forecast oracle clients.

The oracle takes the historical series as JSON text plus a horizon in days
and answers ``{"predictedSales": <JSON text>, "summary": <text>}``. Its
output is untrusted; callers pass it through the normalizer.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from coffeeos.core.config import Settings
from coffeeos.core.errors import ForecastUnavailable, MalformedForecast

logger = logging.getLogger(__name__)

FORECAST_PROMPT = """You are an AI sales forecasting expert. Analyze the provided historical sales data and predict future sales trends.

Historical Sales Data: {historical_sales_data}

Forecast Horizon: {forecast_days} days

Provide the predicted sales data as a JSON string, and include a summary of the trends and insights.

Ensure the predictedSales data includes the date and predicted sales for each day in the forecast horizon.
"""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "predictedSales": {
            "type": "STRING",
            "description": "Predicted sales data, as a JSON string. Each entry should contain date and sales fields.",
        },
        "summary": {
            "type": "STRING",
            "description": "A summary of the predicted sales trends and insights.",
        },
    },
    "required": ["predictedSales", "summary"],
}


class ForecastOracle(ABC):
    """Abstract forecast oracle."""

    name: str = "base"

    @abstractmethod
    async def forecast(self, historical_sales_data: str, forecast_days: int) -> Dict[str, Any]:
        """Return the raw ``{predictedSales, summary}`` response."""
        ...


class GeminiForecastOracle(ForecastOracle):
    """Gemini ``generateContent`` with a JSON response schema."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "GeminiForecastOracle":
        return cls(
            api_key=settings.forecast_api_key,
            model=settings.forecast_model,
            base_url=settings.forecast_api_url,
            timeout=settings.forecast_timeout_seconds,
            **kwargs,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def _payload(self, historical_sales_data: str, forecast_days: int) -> Dict[str, Any]:
        prompt = FORECAST_PROMPT.format(
            historical_sales_data=historical_sales_data,
            forecast_days=forecast_days,
        )
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    async def forecast(self, historical_sales_data: str, forecast_days: int) -> Dict[str, Any]:
        if not self.is_configured:
            raise ForecastUnavailable("Forecast service is not configured")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.endpoint,
                    headers={"x-goog-api-key": self._api_key, "Content-Type": "application/json"},
                    json=self._payload(historical_sales_data, forecast_days),
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Forecast oracle returned HTTP {e.response.status_code}")
            raise ForecastUnavailable(
                f"Forecast service failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Forecast oracle unreachable: {e}")
            raise ForecastUnavailable("Forecast service is unreachable") from e
        except ValueError as e:
            raise MalformedForecast("Forecast service returned a non-JSON body") from e

        return self._extract(body)

    @staticmethod
    def _extract(body: Any) -> Dict[str, Any]:
        """Pull the structured output out of the first candidate."""
        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedForecast("Forecast service returned no candidate output") from e
        try:
            output = json.loads(text)
        except (TypeError, ValueError) as e:
            raise MalformedForecast("Forecast output is not valid JSON") from e
        if not isinstance(output, dict):
            raise MalformedForecast("Forecast output is not an object")
        return output
