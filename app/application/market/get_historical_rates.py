"""
Use case: Fetch daily historical rates for an instrument.

Input: GetHistoricalRatesQuery (base_currency, quote_currency, start_date, end_date)
Output: list[HistoricalRate] ordered by date ascending
Side effects: None.
Failure cases: InvalidDateRangeError, UnknownCurrencyError, UpstreamUnavailableError.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from app.domain.market.entities import HistoricalRate
from app.domain.market.errors import InvalidDateRangeError
from app.domain.market.ports import RateSourcePort
from app.domain.trading.entities import CURRENCY_CODE_PATTERN
from app.domain.trading.errors import UnknownCurrencyError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DAYS = 366


@dataclass(frozen=True)
class GetHistoricalRatesQuery:
    """Input DTO for a historical rate request.

    Attributes:
        base_currency: Currency the rates are quoted against.
        quote_currency: Currency whose rate is returned.
        start_date: First day (inclusive).
        end_date: Last day (inclusive).
    """

    base_currency: str
    quote_currency: str
    start_date: date
    end_date: date


class GetHistoricalRatesUseCase:
    """Validates the requested window and delegates to the rate source."""

    def __init__(self, rate_source: RateSourcePort, max_days: int = DEFAULT_MAX_DAYS) -> None:
        self._rate_source = rate_source
        self._max_days = max_days

    async def execute(self, query: GetHistoricalRatesQuery) -> list[HistoricalRate]:
        """Run the historical rates use case.

        Raises:
            UnknownCurrencyError: If a currency code is malformed.
            InvalidDateRangeError: If the range is reversed, in the future,
                or longer than the configured maximum.
        """
        for currency in (query.base_currency, query.quote_currency):
            if not CURRENCY_CODE_PATTERN.match(currency):
                raise UnknownCurrencyError(currency)

        start, end = query.start_date, query.end_date
        if start > end:
            raise InvalidDateRangeError(start, end, "start is after end")
        if end > datetime.now(timezone.utc).date():
            raise InvalidDateRangeError(start, end, "end is in the future")
        if (end - start).days + 1 > self._max_days:
            raise InvalidDateRangeError(start, end, f"longer than {self._max_days} days")

        logger.info(
            "Fetching history for %s/%s from %s to %s",
            query.base_currency,
            query.quote_currency,
            start,
            end,
        )
        rates = await self._rate_source.fetch_history(
            query.base_currency, query.quote_currency, start, end
        )
        return sorted(rates, key=lambda r: r.date)
