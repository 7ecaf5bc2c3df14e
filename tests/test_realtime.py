"""
Tests for the real-time market data pipeline.

Covers:
- StreamEvent serialization
- Subscription (latest-value slot, control FIFO)
- Broadcaster (subscribe priming, fan-out, errors)
- RatePoller (success, failed fetch, predictor fallback)
- GetHistoricalRatesUseCase validation
- ClientCommandHandler protocol
- MarketScheduler lifecycle
"""

import asyncio
import json
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from app.application.market.broadcaster import (
    CONNECTED,
    ERROR,
    HISTORICAL_DATA_UPDATE,
    LATEST_RATES_UPDATE,
    PONG,
    Broadcaster,
    StreamEvent,
    Subscription,
)
from app.application.market.client_commands import ClientCommandHandler
from app.application.market.get_historical_rates import (
    GetHistoricalRatesQuery,
    GetHistoricalRatesUseCase,
)
from app.application.market.poll_rates import PollerState, RatePoller
from app.domain.market.entities import (
    HistoricalRate,
    IndicatorSet,
    MarketUpdate,
    Recommendation,
)
from app.domain.market.errors import InvalidDateRangeError
from app.domain.market.indicators import IndicatorEngine
from app.domain.market.state import MarketState
from app.domain.trading.errors import UnknownCurrencyError
from app.infrastructure.market.rate_source_adapter import HttpRateSourceAdapter
from app.infrastructure.market.scheduler import MarketScheduler

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
UTC_TODAY = datetime.now(timezone.utc).date()


def _update(price: float, at: datetime = T0) -> MarketUpdate:
    indicators = IndicatorSet(
        current_price=price,
        sma_short=price,
        sma_long=price,
        ema=price,
        rsi=50.0,
        atr=0.0,
        bollinger_upper=price,
        bollinger_lower=price,
        volatility=0.0,
        observations=1,
    )
    return MarketUpdate(
        base="USD",
        rates={"EUR": price},
        instrument="USD/EUR",
        indicators=indicators,
        recommendation=Recommendation.HOLD,
        generated_at=at,
    )


def _drain(subscription: Subscription) -> list[StreamEvent]:
    events = []
    while (event := subscription.poll()) is not None:
        events.append(event)
    return events


@pytest.fixture
def state() -> MarketState:
    return MarketState(history_capacity=50)


@pytest.fixture
def broadcaster(state) -> Broadcaster:
    return Broadcaster(state)


@pytest.fixture
def poller(rate_source, predictor, state, broadcaster) -> RatePoller:
    return RatePoller(
        rate_source=rate_source,
        predictor=predictor,
        state=state,
        broadcaster=broadcaster,
        indicator_engine=IndicatorEngine(),
        predictor_timeout=0.5,
    )


# =====================================================================
# StreamEvent
# =====================================================================

class TestStreamEvent:
    def test_to_json_envelope(self):
        event = StreamEvent.for_update(_update(0.91))
        parsed = json.loads(event.to_json())

        assert parsed["event"] == LATEST_RATES_UPDATE
        assert parsed["data"]["rates"]["EUR"] == 0.91
        assert parsed["data"]["recommendation"] == "Hold"
        assert parsed["data"]["indicators"]["rsi"] == 50.0
        assert "timestamp" in parsed

    def test_to_sse_format(self):
        sse = StreamEvent.error("boom").to_sse()
        assert sse.startswith("event: error\n")
        assert "data: " in sse
        assert sse.endswith("\n\n")


# =====================================================================
# Subscription
# =====================================================================

class TestSubscription:
    """Tests for the per-subscriber channel."""

    def test_latest_update_wins(self):
        subscription = Subscription(1)
        subscription.offer_update(_update(0.90, T0))
        subscription.offer_update(_update(0.91, T0 + timedelta(seconds=1)))

        events = _drain(subscription)
        assert len(events) == 1
        assert events[0].data["rates"]["EUR"] == 0.91
        assert subscription.dropped_updates == 1

    def test_older_update_never_follows_newer(self):
        subscription = Subscription(1)
        subscription.offer_update(_update(0.91, T0 + timedelta(seconds=1)))
        _drain(subscription)
        subscription.offer_update(_update(0.90, T0))

        assert subscription.poll() is None

    def test_control_messages_first_and_bounded(self):
        subscription = Subscription(1, control_buffer=2)
        subscription.offer_update(_update(0.91))
        for i in range(3):
            subscription.offer(StreamEvent.error(f"e{i}"))

        events = _drain(subscription)
        assert [e.event_type for e in events] == [ERROR, ERROR, LATEST_RATES_UPDATE]
        # Oldest control message dropped.
        assert [e.data["message"] for e in events[:2]] == ["e1", "e2"]

    @pytest.mark.asyncio
    async def test_next_waits_for_event(self):
        subscription = Subscription(1)

        async def publish_later():
            await asyncio.sleep(0.01)
            subscription.offer_update(_update(0.92))

        task = asyncio.create_task(publish_later())
        event = await asyncio.wait_for(subscription.next(), timeout=1.0)
        await task
        assert event.event_type == LATEST_RATES_UPDATE


# =====================================================================
# Broadcaster
# =====================================================================

class TestBroadcaster:
    """Tests for subscriber fan-out."""

    def test_initial_state(self, broadcaster):
        assert broadcaster.active_connections == 0
        assert broadcaster.stats["total_updates_broadcast"] == 0

    def test_subscribe_sends_connected_then_cached_update(self, state, broadcaster):
        state.record_update(_update(0.91))
        subscription = broadcaster.subscribe()

        events = _drain(subscription)
        assert [e.event_type for e in events] == [CONNECTED, LATEST_RATES_UPDATE]

    def test_subscribe_without_cache(self, broadcaster):
        events = _drain(broadcaster.subscribe())
        assert [e.event_type for e in events] == [CONNECTED]

    def test_broadcast_reaches_every_subscriber(self, broadcaster):
        first, second = broadcaster.subscribe(), broadcaster.subscribe()
        _drain(first), _drain(second)

        assert broadcaster.broadcast(_update(0.93)) == 2
        assert _drain(first)[0].data["rates"]["EUR"] == 0.93
        assert _drain(second)[0].data["rates"]["EUR"] == 0.93

    def test_unsubscribed_client_gets_nothing(self, broadcaster):
        subscription = broadcaster.subscribe()
        _drain(subscription)
        broadcaster.unsubscribe(subscription)

        assert broadcaster.broadcast(_update(0.93)) == 0
        assert subscription.poll() is None
        assert broadcaster.active_connections == 0

    def test_broadcast_error(self, broadcaster):
        subscription = broadcaster.subscribe()
        _drain(subscription)

        broadcaster.broadcast_error("upstream down")
        events = _drain(subscription)
        assert len(events) == 1
        assert events[0].data == {"message": "upstream down"}
        assert broadcaster.stats["total_errors_broadcast"] == 1

    @pytest.mark.asyncio
    async def test_sse_generator_yields_connected_comment_and_events(self, broadcaster):
        gen = broadcaster.sse_generator()
        assert await gen.__anext__() == ": connected\n\n"
        first = await gen.__anext__()
        assert first.startswith(f"event: {CONNECTED}")
        assert broadcaster.active_connections == 1
        await gen.aclose()
        assert broadcaster.active_connections == 0


# =====================================================================
# RatePoller
# =====================================================================

class TestRatePoller:
    """Tests for one poll cycle."""

    @pytest.mark.asyncio
    async def test_successful_poll_updates_history_and_broadcasts(self, poller, state, broadcaster, predictor):
        subscription = broadcaster.subscribe()
        _drain(subscription)

        result = await poller.poll()

        assert result.outcome is PollerState.UPDATED
        assert len(state.history_for("USD/EUR")) == 1
        assert state.latest_update is result.update
        assert result.update.recommendation is Recommendation.BUY
        assert predictor.features[0]["current_price"] == 0.91
        assert _drain(subscription)[0].event_type == LATEST_RATES_UPDATE
        assert poller.status is PollerState.IDLE

    @pytest.mark.asyncio
    async def test_failed_fetch_leaves_state_untouched(self, poller, state, broadcaster, rate_source):
        await poller.poll()
        previous = state.latest_update
        subscription = broadcaster.subscribe()
        _drain(subscription)

        rate_source.fail = True
        result = await poller.poll()

        assert result.outcome is PollerState.FETCH_FAILED
        assert len(state.history_for("USD/EUR")) == 1
        assert state.latest_update is previous
        events = _drain(subscription)
        assert [e.event_type for e in events] == [ERROR]
        assert poller.get_status()["last_error"] is not None

    @pytest.mark.asyncio
    async def test_predictor_failure_falls_back_to_hold(self, poller, predictor):
        predictor.fail = True
        result = await poller.poll()
        assert result.outcome is PollerState.UPDATED
        assert result.update.recommendation is Recommendation.HOLD

    @pytest.mark.asyncio
    async def test_predictor_timeout_falls_back_to_hold(self, poller, predictor):
        async def slow_predict(features):
            await asyncio.sleep(5)
            return Recommendation.SELL

        predictor.predict = slow_predict
        result = await poller.poll()
        assert result.update.recommendation is Recommendation.HOLD

    @pytest.mark.asyncio
    async def test_predictor_crash_falls_back_to_hold(self, poller, state, predictor):
        async def crashing_predict(features):
            raise RuntimeError("predictor client bug")

        predictor.predict = crashing_predict
        result = await poller.poll()

        assert result.outcome is PollerState.UPDATED
        assert result.update.recommendation is Recommendation.HOLD
        assert state.latest_update is result.update

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_rate", [float("nan"), float("inf"), 0.0, -0.5])
    async def test_unusable_reference_rate_is_a_failed_fetch(self, poller, state, broadcaster, rate_source, bad_rate):
        subscription = broadcaster.subscribe()
        _drain(subscription)
        rate_source.eur_rates = [bad_rate]

        result = await poller.poll()

        assert result.outcome is PollerState.FETCH_FAILED
        assert len(state.history_for("USD/EUR")) == 0
        assert state.latest_update is None
        assert [e.event_type for e in _drain(subscription)] == [ERROR]

    @pytest.mark.asyncio
    async def test_non_finite_payload_from_http_source_is_a_failed_fetch(self, predictor, state, broadcaster):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b'{"base": "USD", "rates": {"EUR": NaN, "GBP": 0.78}}',
                headers={"content-type": "application/json"},
            )

        rate_source = HttpRateSourceAdapter(
            "https://rates.test/latest/{base}",
            "https://rates.test/{start}..{end}",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        poller = RatePoller(
            rate_source=rate_source,
            predictor=predictor,
            state=state,
            broadcaster=broadcaster,
            indicator_engine=IndicatorEngine(),
        )

        result = await poller.poll()

        assert result.outcome is PollerState.FETCH_FAILED
        assert state.history_for("USD/EUR").snapshot() == ()
        assert predictor.features == []

    @pytest.mark.asyncio
    async def test_history_evolves_across_polls(self, poller, state, rate_source):
        rate_source.eur_rates = [0.90, 0.91, 0.92]
        for _ in range(3):
            await poller.poll()

        history = state.history_for("USD/EUR")
        assert history.snapshot() == (0.90, 0.91, 0.92)
        assert state.latest_update.indicators.current_price == 0.92

    @pytest.mark.asyncio
    async def test_bases_tracked_separately(self, poller, state):
        await poller.poll("USD")
        await poller.poll("GBP")
        assert state.instruments == ["GBP/EUR", "USD/EUR"]

    @pytest.mark.asyncio
    async def test_reference_base_has_unit_price(self, poller, state):
        result = await poller.poll("EUR")
        assert result.update.indicators.current_price == 1.0


# =====================================================================
# GetHistoricalRatesUseCase
# =====================================================================

class TestGetHistoricalRates:
    @pytest.mark.asyncio
    async def test_returns_rates_sorted_by_date(self, rate_source):
        rate_source.history = [
            HistoricalRate(date(2024, 1, 3), 0.92),
            HistoricalRate(date(2024, 1, 2), 0.91),
        ]
        rates = await GetHistoricalRatesUseCase(rate_source).execute(
            GetHistoricalRatesQuery("USD", "EUR", date(2024, 1, 1), date(2024, 1, 31))
        )
        assert [r.date.day for r in rates] == [2, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start, end", [
        (date(2024, 2, 1), date(2024, 1, 1)),
        (date(2020, 1, 1), date(2024, 1, 1)),
        (UTC_TODAY, UTC_TODAY + timedelta(days=2)),
    ])
    async def test_invalid_ranges_rejected(self, rate_source, start, end):
        with pytest.raises(InvalidDateRangeError):
            await GetHistoricalRatesUseCase(rate_source).execute(
                GetHistoricalRatesQuery("USD", "EUR", start, end)
            )

    @pytest.mark.asyncio
    async def test_range_ending_on_the_utc_day_accepted(self, rate_source):
        rate_source.history = [HistoricalRate(UTC_TODAY, 0.93)]
        rates = await GetHistoricalRatesUseCase(rate_source).execute(
            GetHistoricalRatesQuery("USD", "EUR", UTC_TODAY - timedelta(days=7), UTC_TODAY)
        )
        assert [r.rate for r in rates] == [0.93]

    @pytest.mark.asyncio
    async def test_bad_currency_rejected(self, rate_source):
        with pytest.raises(UnknownCurrencyError):
            await GetHistoricalRatesUseCase(rate_source).execute(
                GetHistoricalRatesQuery("usd", "EUR", date(2024, 1, 1), date(2024, 1, 2))
            )


# =====================================================================
# ClientCommandHandler
# =====================================================================

class TestClientCommandHandler:
    """Tests for the client message protocol."""

    @pytest.fixture
    def handler(self, poller, rate_source) -> ClientCommandHandler:
        return ClientCommandHandler(poller, GetHistoricalRatesUseCase(rate_source))

    @pytest.mark.asyncio
    async def test_ping_pong(self, handler):
        subscription = Subscription(1)
        await handler.handle(json.dumps({"action": "ping"}), subscription)
        assert _drain(subscription)[0].event_type == PONG

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", json.dumps({"action": "dance"})])
    async def test_bad_messages_answered_with_error(self, handler, raw):
        subscription = Subscription(1)
        await handler.handle(raw, subscription)
        events = _drain(subscription)
        assert [e.event_type for e in events] == [ERROR]

    @pytest.mark.asyncio
    async def test_invalid_currency_reported_to_requester(self, handler, rate_source):
        subscription = Subscription(1)
        await handler.handle(
            json.dumps({"action": "request_latest_rates", "base_currency": "US"}), subscription
        )
        assert _drain(subscription)[0].event_type == ERROR
        assert rate_source.calls == 0

    @pytest.mark.asyncio
    async def test_latest_rates_request_broadcasts_to_everyone(self, handler, broadcaster):
        requester, other = broadcaster.subscribe(), broadcaster.subscribe()
        _drain(requester), _drain(other)

        await handler.handle(
            json.dumps({"action": "request_latest_rates", "base_currency": "usd"}), requester
        )

        assert _drain(requester)[0].event_type == LATEST_RATES_UPDATE
        assert _drain(other)[0].event_type == LATEST_RATES_UPDATE

    @pytest.mark.asyncio
    async def test_historical_reply_only_to_requester(self, handler, broadcaster, rate_source):
        rate_source.history = [HistoricalRate(date(2024, 1, 2), 0.91)]
        requester, other = broadcaster.subscribe(), broadcaster.subscribe()
        _drain(requester), _drain(other)

        await handler.handle(json.dumps({
            "action": "request_historical_data",
            "base_currency": "USD",
            "start_date": "2024-01-01",
            "end_date": "2024-01-31",
        }), requester)

        events = _drain(requester)
        assert events[0].event_type == HISTORICAL_DATA_UPDATE
        assert events[0].data["quote_currency"] == "EUR"
        assert events[0].data["rates"] == [{"date": "2024-01-02", "rate": 0.91}]
        assert _drain(other) == []

    @pytest.mark.asyncio
    async def test_historical_upstream_failure_reported(self, handler, rate_source):
        rate_source.fail = True
        subscription = Subscription(1)
        await handler.handle(json.dumps({
            "action": "request_historical_data",
            "base_currency": "USD",
            "start_date": "2024-01-01",
            "end_date": "2024-01-31",
        }), subscription)
        assert _drain(subscription)[0].event_type == ERROR


# =====================================================================
# MarketScheduler
# =====================================================================

class TestMarketScheduler:
    """Tests for the APScheduler-driven polling job."""

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            MarketScheduler(AsyncMock(), interval_seconds=0)

    def test_status_before_start(self):
        scheduler = MarketScheduler(AsyncMock(), interval_seconds=60)
        status = scheduler.get_status()
        assert status["running"] is False
        assert status["next_run_at"] is None

    @pytest.mark.asyncio
    async def test_first_poll_runs_immediately(self):
        poller = AsyncMock()
        scheduler = MarketScheduler(poller, interval_seconds=3600)
        scheduler.start()
        try:
            for _ in range(50):
                if poller.poll.await_count:
                    break
                await asyncio.sleep(0.02)
            poller.poll.assert_awaited()
            assert scheduler.is_running
            assert scheduler.get_status()["runs"] == 1
        finally:
            scheduler.stop()
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_cycle_survives_poller_crash(self):
        poller = AsyncMock()
        poller.poll.side_effect = RuntimeError("boom")
        scheduler = MarketScheduler(poller, interval_seconds=60)
        await scheduler._run_cycle()
        assert scheduler.get_status()["runs"] == 1
