"""
Adapter: External exchange-rate source.

Implements RateSourcePort over HTTP with httpx.

Latest rates:  GET {rate_source_url}            (``{base}`` is substituted)
    → {"base": "USD", "rates": {"EUR": 0.91, ...}}
History:       GET {history_url}?from=USD&to=EUR (``{start}``/``{end}`` substituted)
    → {"rates": {"2024-01-02": {"EUR": 0.91}, ...}}

Every failure (timeout, transport error, non-2xx, malformed JSON) is
raised as UpstreamUnavailableError.
"""

import logging
import math
from datetime import date
from typing import Any

import httpx

from app.domain.market.entities import HistoricalRate, RateSnapshot
from app.domain.market.errors import UpstreamUnavailableError
from app.domain.market.ports import RateSourcePort

logger = logging.getLogger(__name__)

SERVICE_NAME = "rate source"
DEFAULT_TIMEOUT = 10.0


def _rate_value(value: Any) -> float:
    rate = float(value)
    if not math.isfinite(rate):
        raise ValueError(f"non-finite rate {value!r}")
    return rate


def _parse_rates(payload: Any) -> RateSnapshot:
    if not isinstance(payload, dict):
        raise ValueError("payload is not an object")
    base = payload.get("base") or payload.get("base_code")
    rates = payload.get("rates")
    if not isinstance(base, str) or not isinstance(rates, dict) or not rates:
        raise ValueError("missing base or rates")
    return RateSnapshot(
        base=base.upper(),
        rates={str(code).upper(): _rate_value(value) for code, value in rates.items()},
    )


def _parse_history(payload: Any, quote_currency: str) -> list[HistoricalRate]:
    if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
        raise ValueError("missing rates")
    history = []
    for day, quotes in payload["rates"].items():
        if quote_currency in quotes:
            history.append(
                HistoricalRate(date=date.fromisoformat(day), rate=_rate_value(quotes[quote_currency]))
            )
    return history


class HttpRateSourceAdapter(RateSourcePort):
    """httpx client for the exchange-rate source.

    Args:
        rates_url: URL template of the latest-rates endpoint.
        history_url: URL template of the time-series endpoint.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built AsyncClient (tests inject a mock transport).
    """

    def __init__(
        self,
        rates_url: str,
        history_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._rates_url = rates_url
        self._history_url = history_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_rates(self, base_currency: str) -> RateSnapshot:
        url = self._rates_url.format(base=base_currency)
        payload = await self._get_json(url)
        try:
            return _parse_rates(payload)
        except (ValueError, TypeError) as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, f"malformed payload: {exc}") from exc

    async def fetch_history(
        self, base_currency: str, quote_currency: str, start: date, end: date
    ) -> list[HistoricalRate]:
        url = self._history_url.format(start=start.isoformat(), end=end.isoformat())
        payload = await self._get_json(url, params={"from": base_currency, "to": quote_currency})
        try:
            return _parse_history(payload, quote_currency)
        except (ValueError, TypeError) as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, f"malformed payload: {exc}") from exc

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, "request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailableError(
                SERVICE_NAME, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, type(exc).__name__) from exc
        except ValueError as exc:
            raise UpstreamUnavailableError(SERVICE_NAME, "response is not JSON") from exc

    async def aclose(self) -> None:
        await self._client.aclose()
