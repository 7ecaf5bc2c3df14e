"""
FastAPI router for account management.

Signup creates a user with the seeded wallet; login exchanges
credentials for a bearer token. Both are rate limited per client.
"""

from fastapi import APIRouter, Depends, Request

from app.application.trading.authenticate_user import AuthenticateUserUseCase
from app.application.trading.dtos import AuthenticateUserCommand, RegisterUserCommand
from app.application.trading.register_user import RegisterUserUseCase
from app.interfaces.auth.schemas import CredentialsRequest, SignupResponse, TokenResponse
from app.interfaces.trading.dependencies import (
    get_authenticate_user_use_case,
    get_register_user_use_case,
)
from app.interfaces.trading.schemas import ErrorResponse
from app.shared.security.rate_limiting import auth_rate_limit, limiter

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=SignupResponse,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Create an account",
)
@limiter.limit(auth_rate_limit)
def signup(
    request: Request,
    body: CredentialsRequest,
    use_case: RegisterUserUseCase = Depends(get_register_user_use_case),
) -> SignupResponse:
    result = use_case.execute(
        RegisterUserCommand(username=body.username, password=body.password)
    )
    return SignupResponse(id=result.id, username=result.username, balances=result.balances)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Obtain a bearer token",
)
@limiter.limit(auth_rate_limit)
def login(
    request: Request,
    body: CredentialsRequest,
    use_case: AuthenticateUserUseCase = Depends(get_authenticate_user_use_case),
) -> TokenResponse:
    result = use_case.execute(
        AuthenticateUserCommand(username=body.username, password=body.password)
    )
    return TokenResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        username=result.username,
    )
