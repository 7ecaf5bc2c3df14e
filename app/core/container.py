"""
Composition root.

Wires infrastructure adapters into domain services and use cases via
constructor injection. One Container lives for the lifetime of the
application and is stored on ``app.state.container``; the interface
layer's dependency functions read from it.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.engine import Engine

from app.application.market.broadcaster import Broadcaster
from app.application.market.get_historical_rates import GetHistoricalRatesUseCase
from app.application.market.poll_rates import RatePoller
from app.application.trading.authenticate_user import AuthenticateUserUseCase
from app.application.trading.execute_trade import ExecuteTradeUseCase
from app.application.trading.get_trade_analytics import GetTradeAnalyticsUseCase
from app.application.trading.get_wallet import GetWalletUseCase
from app.application.trading.list_trades import ListTradesUseCase
from app.application.trading.register_user import RegisterUserUseCase
from app.core.config import Settings
from app.domain.market.indicators import IndicatorEngine
from app.domain.market.ports import PredictorPort, RateSourcePort
from app.domain.market.state import MarketState
from app.domain.trading.ports import TokenServicePort
from app.domain.trading.wallet_ledger import WalletLedger
from app.infrastructure.database import create_db_engine
from app.infrastructure.market.predictor_adapter import HttpPredictorAdapter
from app.infrastructure.market.rate_source_adapter import HttpRateSourceAdapter
from app.infrastructure.market.scheduler import MarketScheduler
from app.infrastructure.trading.credential_hasher import PasslibCredentialHasher
from app.infrastructure.trading.token_service import JwtTokenService
from app.infrastructure.trading.trade_repository import TradeRepositoryAdapter
from app.infrastructure.trading.user_repository import UserRepositoryAdapter

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Process-scoped services shared by every request and stream."""

    settings: Settings
    engine: Engine
    tokens: TokenServicePort
    rate_source: RateSourcePort
    predictor: PredictorPort
    market_state: MarketState
    broadcaster: Broadcaster
    poller: RatePoller
    scheduler: MarketScheduler
    register_user: RegisterUserUseCase
    authenticate_user: AuthenticateUserUseCase
    execute_trade: ExecuteTradeUseCase
    get_wallet: GetWalletUseCase
    list_trades: ListTradesUseCase
    get_trade_analytics: GetTradeAnalyticsUseCase
    get_historical_rates: GetHistoricalRatesUseCase

    async def aclose(self) -> None:
        """Release upstream HTTP clients and database connections."""
        for client in (self.rate_source, self.predictor):
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()
        self.engine.dispose()


def build_container(
    settings: Settings,
    rate_source: Optional[RateSourcePort] = None,
    predictor: Optional[PredictorPort] = None,
) -> Container:
    """Build every service from settings.

    Args:
        settings: Application settings.
        rate_source: Override for the HTTP rate source (tests).
        predictor: Override for the HTTP predictor (tests).
    """
    engine = create_db_engine(settings.get_database_dsn())
    users = UserRepositoryAdapter(engine)
    trades = TradeRepositoryAdapter(engine)
    ledger = WalletLedger(users)
    hasher = PasslibCredentialHasher()
    tokens = JwtTokenService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )

    if rate_source is None:
        rate_source = HttpRateSourceAdapter(
            rates_url=settings.rate_source_url,
            history_url=settings.rate_source_history_url,
            timeout=settings.rate_source_timeout_seconds,
        )
    if predictor is None:
        predictor = HttpPredictorAdapter(
            url=settings.predictor_url,
            timeout=settings.predictor_timeout_seconds,
        )

    market_state = MarketState(history_capacity=settings.history_capacity)
    broadcaster = Broadcaster(market_state)
    poller = RatePoller(
        rate_source=rate_source,
        predictor=predictor,
        state=market_state,
        broadcaster=broadcaster,
        indicator_engine=IndicatorEngine(
            sma_short_window=settings.sma_short_window,
            sma_long_window=settings.sma_long_window,
            rsi_period=settings.rsi_period,
        ),
        default_base_currency=settings.default_base_currency,
        reference_currency=settings.reference_currency,
        predictor_timeout=settings.predictor_timeout_seconds,
    )

    return Container(
        settings=settings,
        engine=engine,
        tokens=tokens,
        rate_source=rate_source,
        predictor=predictor,
        market_state=market_state,
        broadcaster=broadcaster,
        poller=poller,
        scheduler=MarketScheduler(poller, interval_seconds=settings.poll_interval_seconds),
        register_user=RegisterUserUseCase(users, hasher, settings.wallet_seed),
        authenticate_user=AuthenticateUserUseCase(users, hasher, tokens),
        execute_trade=ExecuteTradeUseCase(
            ledger, profit_bound=Decimal(str(settings.profit_fraction_bound))
        ),
        get_wallet=GetWalletUseCase(ledger),
        list_trades=ListTradesUseCase(trades),
        get_trade_analytics=GetTradeAnalyticsUseCase(trades),
        get_historical_rates=GetHistoricalRatesUseCase(
            rate_source, max_days=settings.max_history_days
        ),
    )
