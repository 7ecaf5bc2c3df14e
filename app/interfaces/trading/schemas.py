"""
Pydantic schemas for trading API request/response validation.

These schemas enforce input validation and define the API contract.
All fields use strict typing with constraints.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

PAIR_DESCRIPTION = "Currency pair as BASE/QUOTE, e.g. EUR/USD"
PAIR_PATTERN = r"^[A-Z]{3}/[A-Z]{3}$"
MAX_TRADES_LIMIT = 1000


class ExecuteTradeRequest(BaseModel):
    """Request schema for placing an order.

    Attributes:
        currency_pair: BASE/QUOTE symbol of two three-letter codes.
        action: "Buy" or "Sell". Other labels are rejected by the executor.
        price: Quote currency per unit of base (> 0).
        quantity: Amount of base currency (> 0).
    """

    currency_pair: str = Field(..., pattern=PAIR_PATTERN, description=PAIR_DESCRIPTION)
    action: str = Field(..., min_length=1, max_length=16, description="Buy or Sell")
    price: Decimal = Field(..., gt=0, description="Execution price")
    quantity: Decimal = Field(..., gt=0, description="Amount of base currency")


class TradeResponse(BaseModel):
    """Response schema for a recorded trade."""

    order_id: str
    currency_pair: str
    action: str
    price: Decimal
    quantity: Decimal
    status: str
    timestamp: datetime
    profit: Decimal


class WalletResponse(BaseModel):
    """Response schema for wallet balances."""

    user_id: int
    balances: dict[str, Decimal]


class TradeAnalyticsResponse(BaseModel):
    """Response schema for aggregate trade figures.

    Attributes:
        total_volume: Sum of traded quantities.
        total_profit: Sum of realized Sell P/L.
        total_trades_count: Number of recorded trades.
    """

    total_volume: Decimal
    total_profit: Decimal
    total_trades_count: int


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str


class ErrorResponse(BaseModel):
    """Standard error response returned by all error handlers."""

    error: str
    detail: str | None = None
