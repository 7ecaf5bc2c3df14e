"""
Dependency injection for the trading bounded context.

Provides FastAPI dependency functions that hand out the use cases
built once by the application Container, plus bearer-token principal
resolution for the protected routes.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.trading.authenticate_user import AuthenticateUserUseCase
from app.application.trading.execute_trade import ExecuteTradeUseCase
from app.application.trading.get_trade_analytics import GetTradeAnalyticsUseCase
from app.application.trading.get_wallet import GetWalletUseCase
from app.application.trading.list_trades import ListTradesUseCase
from app.application.trading.register_user import RegisterUserUseCase
from app.core.container import Container
from app.domain.trading.entities import Principal
from app.domain.trading.errors import UnauthenticatedError

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    """Return the Container created by the application lifespan."""
    return request.app.state.container


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    container: Container = Depends(get_container),
) -> Principal:
    """Resolve the bearer token into the calling principal.

    Raises:
        UnauthenticatedError: If no bearer token is present.
        InvalidCredentialError: If the token is invalid or expired.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()
    return container.tokens.resolve(credentials.credentials)


def get_register_user_use_case(
    container: Container = Depends(get_container),
) -> RegisterUserUseCase:
    return container.register_user


def get_authenticate_user_use_case(
    container: Container = Depends(get_container),
) -> AuthenticateUserUseCase:
    return container.authenticate_user


def get_execute_trade_use_case(
    container: Container = Depends(get_container),
) -> ExecuteTradeUseCase:
    return container.execute_trade


def get_wallet_use_case(
    container: Container = Depends(get_container),
) -> GetWalletUseCase:
    return container.get_wallet


def get_list_trades_use_case(
    container: Container = Depends(get_container),
) -> ListTradesUseCase:
    return container.list_trades


def get_trade_analytics_use_case(
    container: Container = Depends(get_container),
) -> GetTradeAnalyticsUseCase:
    return container.get_trade_analytics
