"""
Adapter: External recommendation predictor.

Implements PredictorPort over HTTP with httpx.

    POST {predictor_url}  {"features": {"current_price": ..., "rsi": ..., ...}}
    → {"recommendation": "Buy" | "Sell" | "Hold"}

The call is best-effort: callers fall back to Hold on any
UpstreamUnavailableError raised here.
"""

import logging

import httpx

from app.domain.market.entities import Recommendation
from app.domain.market.errors import UpstreamUnavailableError
from app.domain.market.ports import PredictorPort

logger = logging.getLogger(__name__)

SERVICE_NAME = "predictor"
DEFAULT_TIMEOUT = 5.0


class HttpPredictorAdapter(PredictorPort):
    """httpx client for the predictor service."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def predict(self, features: dict[str, float]) -> Recommendation:
        try:
            response = await self._client.post(self._url, json={"features": features})
            response.raise_for_status()
            label = response.json()["recommendation"]
            return Recommendation.from_label(str(label))
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, type(exc).__name__) from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, f"unusable response: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()
