"""
Use case: Summarize the caller's trading activity.

Input: GetTradeAnalyticsQuery (user_id)
Output: TradeAnalyticsResult (total volume, total profit, trade count)
Side effects: None.
"""

from app.application.trading.dtos import GetTradeAnalyticsQuery, TradeAnalyticsResult
from app.domain.trading.ports import TradeRepository


class GetTradeAnalyticsUseCase:
    """Aggregates volume, profit and count over a user's trades."""

    def __init__(self, trade_repo: TradeRepository) -> None:
        self._trade_repo = trade_repo

    def execute(self, query: GetTradeAnalyticsQuery) -> TradeAnalyticsResult:
        summary = self._trade_repo.summarize(query.user_id)
        return TradeAnalyticsResult(
            total_volume=summary.total_volume,
            total_profit=summary.total_profit,
            total_trades_count=summary.total_trades_count,
        )
