"""
Adapter: Trade history repository.

Implements TradeRepository port.
Append-only access to the trades table, read back newest first.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from app.domain.trading.entities import (
    CurrencyPair,
    Trade,
    TradeAction,
    TradeAnalytics,
    TradeStatus,
)
from app.domain.trading.errors import ConflictError
from app.domain.trading.ports import TradeRepository
from app.infrastructure.database import as_utc, trades

logger = logging.getLogger(__name__)


def trade_to_row(trade: Trade) -> dict[str, Any]:
    """Map a Trade entity to trades table values."""
    return {
        "order_id": trade.order_id,
        "user_id": trade.user_id,
        "currency_pair": trade.pair.symbol,
        "action": trade.action.value,
        "price": trade.price,
        "quantity": trade.quantity,
        "status": trade.status.value,
        "timestamp": trade.timestamp,
        "profit": trade.profit,
    }


def _to_decimal(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _row_to_trade(row) -> Trade:
    return Trade(
        order_id=row.order_id,
        user_id=row.user_id,
        pair=CurrencyPair.parse(row.currency_pair),
        action=TradeAction(row.action),
        price=_to_decimal(row.price),
        quantity=_to_decimal(row.quantity),
        status=TradeStatus(row.status),
        timestamp=as_utc(row.timestamp),
        profit=_to_decimal(row.profit),
    )


class TradeRepositoryAdapter(TradeRepository):
    """SQLAlchemy adapter for the trades table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def append(self, trade: Trade) -> None:
        """Insert one trade record.

        Raises:
            ConflictError: If the order id already exists.
        """
        try:
            with self._engine.begin() as conn:
                conn.execute(insert(trades).values(**trade_to_row(trade)))
        except IntegrityError as exc:
            raise ConflictError("Trade", trade.order_id) from exc

    def list_for_user(self, user_id: int, limit: Optional[int] = None) -> list[Trade]:
        query = (
            select(trades)
            .where(trades.c.user_id == user_id)
            .order_by(trades.c.timestamp.desc(), trades.c.seq.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        with self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_trade(r) for r in rows]

    def summarize(self, user_id: int) -> TradeAnalytics:
        query = select(
            func.coalesce(func.sum(trades.c.quantity), 0),
            func.coalesce(func.sum(trades.c.profit), 0),
            func.count(trades.c.seq),
        ).where(trades.c.user_id == user_id)
        with self._engine.connect() as conn:
            volume, profit, count = conn.execute(query).one()
        return TradeAnalytics(
            total_volume=_to_decimal(volume),
            total_profit=_to_decimal(profit),
            total_trades_count=int(count),
        )
