"""
Use case: Poll the rate source and publish a composite market update.

One poll cycle:
    Idle → Fetching → Updated | FetchFailed → Idle

On success the reference rate is pushed into the instrument's rolling
history, indicators are recomputed, the predictor is asked for a
recommendation (falling back to Hold on failure), and the resulting
MarketUpdate is cached and broadcast. On a failed fetch the history and
cached update are left untouched and one error event is broadcast.

Polls are serialized, so the scheduled tick and on-demand requests
never write the shared market state concurrently.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from app.application.market.broadcaster import Broadcaster
from app.domain.market.entities import MarketUpdate, RateSnapshot, Recommendation
from app.domain.market.errors import UpstreamUnavailableError
from app.domain.market.indicators import IndicatorEngine
from app.domain.market.ports import PredictorPort, RateSourcePort
from app.domain.market.state import MarketState, instrument_key

logger = logging.getLogger(__name__)

FALLBACK_RECOMMENDATION = Recommendation.HOLD
DEFAULT_PREDICTOR_TIMEOUT = 5.0


class PollerState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    UPDATED = "updated"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class PollResult:
    """Outcome of one poll cycle."""

    base_currency: str
    outcome: PollerState
    update: MarketUpdate | None = None
    error: str | None = None


class RatePoller:
    """Fetches rates, derives indicators and recommendation, and broadcasts.

    Args:
        rate_source: External exchange-rate source.
        predictor: External recommendation predictor.
        state: Shared market state (this poller is its only writer).
        broadcaster: Subscriber fan-out.
        indicator_engine: Indicator computation.
        default_base_currency: Base used by scheduled polls.
        reference_currency: Currency whose rate is tracked in the history.
        predictor_timeout: Upper bound in seconds on a predictor call.
    """

    def __init__(
        self,
        rate_source: RateSourcePort,
        predictor: PredictorPort,
        state: MarketState,
        broadcaster: Broadcaster,
        indicator_engine: IndicatorEngine,
        default_base_currency: str = "USD",
        reference_currency: str = "EUR",
        predictor_timeout: float = DEFAULT_PREDICTOR_TIMEOUT,
    ) -> None:
        self._rate_source = rate_source
        self._predictor = predictor
        self._state = state
        self._broadcaster = broadcaster
        self._engine = indicator_engine
        self._default_base = default_base_currency
        self._reference = reference_currency
        self._predictor_timeout = predictor_timeout
        self._lock = asyncio.Lock()
        self._status = PollerState.IDLE
        self._last_outcome: PollerState | None = None
        self._last_error: str | None = None
        self._last_success_at: datetime | None = None
        self._polls = 0

    @property
    def status(self) -> PollerState:
        return self._status

    @property
    def default_base_currency(self) -> str:
        return self._default_base

    @property
    def reference_currency(self) -> str:
        return self._reference

    def get_status(self) -> dict:
        return {
            "state": self._status.value,
            "last_outcome": self._last_outcome.value if self._last_outcome else None,
            "last_error": self._last_error,
            "last_success_at": self._last_success_at.isoformat() if self._last_success_at else None,
            "total_polls": self._polls,
            "instruments": self._state.instruments,
        }

    async def poll(self, base_currency: str | None = None) -> PollResult:
        """Run one poll cycle for `base_currency` (default base when None).

        Never raises for upstream failures: a failed fetch is reported
        in the result and broadcast as an error event.
        """
        base = (base_currency or self._default_base).upper()
        async with self._lock:
            self._polls += 1
            self._status = PollerState.FETCHING
            try:
                result = await self._run_cycle(base)
            finally:
                self._status = PollerState.IDLE
            self._last_outcome = result.outcome
            return result

    async def _run_cycle(self, base: str) -> PollResult:
        try:
            snapshot = await self._rate_source.fetch_rates(base)
            price = self._reference_price(snapshot)
        except UpstreamUnavailableError as exc:
            self._last_error = exc.message
            logger.warning("Rate poll failed for base=%s: %s", base, exc.reason)
            self._broadcaster.broadcast_error(f"Failed to fetch rates for {base}: {exc.reason}")
            return PollResult(base_currency=base, outcome=PollerState.FETCH_FAILED, error=exc.message)

        instrument = instrument_key(base, self._reference)
        history = self._state.history_for(instrument)
        history.push(price)
        indicators = self._engine.compute(history)
        recommendation = await self._recommend(indicators.feature_vector())

        update = MarketUpdate(
            base=snapshot.base,
            rates=dict(snapshot.rates),
            instrument=instrument,
            indicators=indicators,
            recommendation=recommendation,
        )
        self._state.record_update(update)
        delivered = self._broadcaster.broadcast(update)

        self._last_error = None
        self._last_success_at = update.generated_at
        logger.info(
            "Market update for %s: price=%.6f rsi=%.2f recommendation=%s subscribers=%d",
            instrument,
            price,
            indicators.rsi,
            recommendation.value,
            delivered,
        )
        return PollResult(base_currency=base, outcome=PollerState.UPDATED, update=update)

    def _reference_price(self, snapshot: RateSnapshot) -> float:
        if snapshot.base == self._reference:
            return 1.0
        rate = snapshot.rates.get(self._reference)
        if rate is None or not math.isfinite(rate) or rate <= 0:
            raise UpstreamUnavailableError(
                "rate source", f"no usable {self._reference} rate for base {snapshot.base}"
            )
        return float(rate)

    async def _recommend(self, features: dict[str, float]) -> Recommendation:
        """Ask the predictor, degrading to Hold on error or timeout."""
        try:
            return await asyncio.wait_for(
                self._predictor.predict(features), timeout=self._predictor_timeout
            )
        except UpstreamUnavailableError as exc:
            logger.warning("Predictor unavailable, using %s: %s", FALLBACK_RECOMMENDATION.value, exc.reason)
        except asyncio.TimeoutError:
            logger.warning("Predictor timed out, using %s", FALLBACK_RECOMMENDATION.value)
        except Exception:
            logger.exception("Predictor call crashed, using %s", FALLBACK_RECOMMENDATION.value)
        return FALLBACK_RECOMMENDATION
