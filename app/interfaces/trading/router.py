"""
FastAPI router for the trading bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
Every route acts on the wallet of the authenticated principal.
"""

from fastapi import APIRouter, Depends, Query, Request

from app.application.trading.dtos import (
    ExecuteTradeCommand,
    GetTradeAnalyticsQuery,
    GetWalletQuery,
    ListTradesQuery,
)
from app.application.trading.execute_trade import ExecuteTradeUseCase
from app.application.trading.get_trade_analytics import GetTradeAnalyticsUseCase
from app.application.trading.get_wallet import GetWalletUseCase
from app.application.trading.list_trades import ListTradesUseCase
from app.domain.trading.entities import Principal
from app.interfaces.trading.dependencies import (
    get_current_principal,
    get_execute_trade_use_case,
    get_list_trades_use_case,
    get_trade_analytics_use_case,
    get_wallet_use_case,
)
from app.interfaces.trading.schemas import (
    MAX_TRADES_LIMIT,
    ErrorResponse,
    ExecuteTradeRequest,
    TradeAnalyticsResponse,
    TradeResponse,
    WalletResponse,
)
from app.shared.security.rate_limiting import limiter, trades_rate_limit

router = APIRouter(prefix="/trading", tags=["trading"])

AUTH_ERRORS = {401: {"model": ErrorResponse}}


@router.get(
    "/wallet",
    response_model=WalletResponse,
    responses={**AUTH_ERRORS, 404: {"model": ErrorResponse}},
    summary="Get wallet",
    description="Current balance of every currency in the caller's wallet.",
)
def get_wallet(
    principal: Principal = Depends(get_current_principal),
    use_case: GetWalletUseCase = Depends(get_wallet_use_case),
) -> WalletResponse:
    result = use_case.execute(GetWalletQuery(user_id=principal.id))
    return WalletResponse(user_id=result.user_id, balances=result.balances)


@router.post(
    "/trades",
    status_code=201,
    response_model=TradeResponse,
    responses={
        **AUTH_ERRORS,
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
    summary="Execute a trade",
    description="Buy or sell a currency pair against the caller's wallet.",
)
@limiter.limit(trades_rate_limit)
def execute_trade(
    request: Request,
    body: ExecuteTradeRequest,
    principal: Principal = Depends(get_current_principal),
    use_case: ExecuteTradeUseCase = Depends(get_execute_trade_use_case),
) -> TradeResponse:
    """Execute an order; the wallet change and trade record commit together."""
    command = ExecuteTradeCommand(
        user_id=principal.id,
        currency_pair=body.currency_pair,
        action=body.action,
        price=body.price,
        quantity=body.quantity,
    )
    result = use_case.execute(command)
    return TradeResponse(**vars(result))


@router.get(
    "/trades",
    response_model=list[TradeResponse],
    responses=AUTH_ERRORS,
    summary="List trades",
    description="The caller's trades, newest first.",
)
def list_trades(
    limit: int | None = Query(None, ge=1, le=MAX_TRADES_LIMIT),
    principal: Principal = Depends(get_current_principal),
    use_case: ListTradesUseCase = Depends(get_list_trades_use_case),
) -> list[TradeResponse]:
    results = use_case.execute(ListTradesQuery(user_id=principal.id, limit=limit))
    return [TradeResponse(**vars(r)) for r in results]


@router.get(
    "/analytics",
    response_model=TradeAnalyticsResponse,
    responses=AUTH_ERRORS,
    summary="Trade analytics",
    description="Total volume, total profit and trade count over the caller's trades.",
)
def get_trade_analytics(
    principal: Principal = Depends(get_current_principal),
    use_case: GetTradeAnalyticsUseCase = Depends(get_trade_analytics_use_case),
) -> TradeAnalyticsResponse:
    result = use_case.execute(GetTradeAnalyticsQuery(user_id=principal.id))
    return TradeAnalyticsResponse(
        total_volume=result.total_volume,
        total_profit=result.total_profit,
        total_trades_count=result.total_trades_count,
    )
