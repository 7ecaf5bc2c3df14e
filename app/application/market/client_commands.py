"""
Handling of messages sent by streaming clients.

Supported commands (JSON):
    {"action": "request_latest_rates", "base_currency": "USD"}
    {"action": "request_historical_data", "base_currency": "USD",
     "quote_currency": "EUR", "start_date": "2024-01-01", "end_date": "2024-01-31"}
    {"action": "ping"}

Replies to the requester (errors, historical data, pongs) go to that
client's Subscription only. A latest-rates request triggers a poll
whose result is broadcast to every subscriber.
"""

import json
import logging
from datetime import date
from typing import Any

from app.application.market.broadcaster import (
    HISTORICAL_DATA_UPDATE,
    PONG,
    StreamEvent,
    Subscription,
)
from app.application.market.get_historical_rates import (
    GetHistoricalRatesQuery,
    GetHistoricalRatesUseCase,
)
from app.application.market.poll_rates import PollerState, RatePoller
from app.domain.market.errors import UpstreamUnavailableError
from app.domain.trading.entities import CURRENCY_CODE_PATTERN
from app.domain.trading.errors import ValidationError

logger = logging.getLogger(__name__)

REQUEST_LATEST_RATES = "request_latest_rates"
REQUEST_HISTORICAL_DATA = "request_historical_data"
PING = "ping"
SUPPORTED_ACTIONS = (REQUEST_LATEST_RATES, REQUEST_HISTORICAL_DATA, PING)


class ClientCommandError(Exception):
    """Raised for a client message that cannot be acted on."""


def _currency(msg: dict[str, Any], key: str, default: str | None = None) -> str:
    raw = msg.get(key, default)
    if not isinstance(raw, str) or not CURRENCY_CODE_PATTERN.match(raw.upper()):
        raise ClientCommandError(f"Invalid currency code for {key}: {raw!r}")
    return raw.upper()


def _date(msg: dict[str, Any], key: str) -> date:
    raw = msg.get(key)
    if not isinstance(raw, str):
        raise ClientCommandError(f"Missing {key} (YYYY-MM-DD)")
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ClientCommandError(f"Invalid {key}: {raw!r}") from exc


class ClientCommandHandler:
    """Parses client messages and dispatches them.

    Args:
        poller: Rate poller used for on-demand refreshes.
        historical_rates: Use case serving historical data requests.
    """

    def __init__(self, poller: RatePoller, historical_rates: GetHistoricalRatesUseCase) -> None:
        self._poller = poller
        self._historical = historical_rates

    async def handle(self, raw: str, subscription: Subscription) -> None:
        """Process one raw message from the client owning `subscription`.

        Never raises for bad input: problems are reported to the
        requester as error events.
        """
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            subscription.offer(StreamEvent.error("Invalid JSON"))
            return
        if not isinstance(msg, dict):
            subscription.offer(StreamEvent.error("Message must be a JSON object"))
            return

        action = msg.get("action")
        try:
            if action == PING:
                subscription.offer(StreamEvent(event_type=PONG, data={}))
            elif action == REQUEST_LATEST_RATES:
                await self._latest_rates(msg)
            elif action == REQUEST_HISTORICAL_DATA:
                await self._historical_data(msg, subscription)
            else:
                subscription.offer(StreamEvent.error(
                    f"Unknown action: {action}. Supported: {', '.join(SUPPORTED_ACTIONS)}"
                ))
        except ClientCommandError as exc:
            subscription.offer(StreamEvent.error(str(exc)))
        except (ValidationError, UpstreamUnavailableError) as exc:
            subscription.offer(StreamEvent.error(exc.message))

    async def _latest_rates(self, msg: dict[str, Any]) -> None:
        base = _currency(msg, "base_currency", self._poller.default_base_currency)
        result = await self._poller.poll(base)
        if result.outcome is PollerState.FETCH_FAILED:
            logger.info("On-demand poll for %s failed; error already broadcast", base)

    async def _historical_data(self, msg: dict[str, Any], subscription: Subscription) -> None:
        query = GetHistoricalRatesQuery(
            base_currency=_currency(msg, "base_currency", self._poller.default_base_currency),
            quote_currency=_currency(msg, "quote_currency", self._poller.reference_currency),
            start_date=_date(msg, "start_date"),
            end_date=_date(msg, "end_date"),
        )
        rates = await self._historical.execute(query)
        subscription.offer(StreamEvent(
            event_type=HISTORICAL_DATA_UPDATE,
            data={
                "base_currency": query.base_currency,
                "quote_currency": query.quote_currency,
                "start_date": query.start_date.isoformat(),
                "end_date": query.end_date.isoformat(),
                "rates": [r.to_dict() for r in rates],
            },
        ))
