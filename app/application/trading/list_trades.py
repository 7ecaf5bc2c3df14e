"""
Use case: List the caller's trades, newest first.

Input: ListTradesQuery (user_id, limit)
Output: list[TradeResult]
Side effects: None.
"""

import logging

from app.application.trading.dtos import ListTradesQuery, TradeResult
from app.domain.trading.ports import TradeRepository

logger = logging.getLogger(__name__)


class ListTradesUseCase:
    """Reads a user's append-only trade history in reverse-chronological order."""

    def __init__(self, trade_repo: TradeRepository) -> None:
        self._trade_repo = trade_repo

    def execute(self, query: ListTradesQuery) -> list[TradeResult]:
        trades = self._trade_repo.list_for_user(query.user_id, limit=query.limit)
        logger.debug("Listed %d trades for user=%s", len(trades), query.user_id)
        return [TradeResult.from_entity(t) for t in trades]
