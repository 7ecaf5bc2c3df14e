"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.market.errors import UpstreamUnavailableError
from app.domain.trading.errors import (
    ConflictError,
    InsufficientFundsError,
    InvalidCredentialError,
    TradingDomainError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_401 = 401
HTTP_404 = 404
HTTP_409 = 409
HTTP_422 = 422
HTTP_500 = 500
HTTP_503 = 503

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def _error_response(
    status_code: int,
    error: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation(
        _request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle rejected order or query parameters."""
        logger.warning("Validation failed: %s", exc.message)
        return _error_response(HTTP_422, "Validation error", exc.message)

    @app.exception_handler(InsufficientFundsError)
    async def handle_insufficient_funds(
        _request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        """Handle insufficient funds errors."""
        logger.warning("Insufficient funds: %s", exc.currency)
        return _error_response(HTTP_400, "Insufficient funds", f"Insufficient {exc.currency} balance")

    @app.exception_handler(ConflictError)
    async def handle_conflict(
        _request: Request, exc: ConflictError
    ) -> JSONResponse:
        logger.warning("Conflict on %s", exc.resource)
        return _error_response(HTTP_409, "Conflict", f"{exc.resource} already exists")

    @app.exception_handler(UserNotFoundError)
    async def handle_user_not_found(
        _request: Request, exc: UserNotFoundError
    ) -> JSONResponse:
        logger.warning("User not found: %s", exc.user_id)
        return _error_response(HTTP_404, "User not found")

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(
        _request: Request, exc: UnauthenticatedError
    ) -> JSONResponse:
        return _error_response(HTTP_401, "Not authenticated", exc.message, BEARER_CHALLENGE)

    @app.exception_handler(InvalidCredentialError)
    async def handle_invalid_credential(
        _request: Request, exc: InvalidCredentialError
    ) -> JSONResponse:
        """Handle bad logins and rejected tokens with one generic detail."""
        return _error_response(HTTP_401, "Invalid credentials", exc.reason, BEARER_CHALLENGE)

    @app.exception_handler(UpstreamUnavailableError)
    async def handle_upstream_unavailable(
        _request: Request, exc: UpstreamUnavailableError
    ) -> JSONResponse:
        """Handle rate source or predictor outages."""
        logger.error("Upstream unavailable: %s (%s)", exc.service, exc.reason)
        return _error_response(HTTP_503, "Service unavailable", f"{exc.service} is unavailable")

    @app.exception_handler(TradingDomainError)
    async def handle_trading_domain(
        _request: Request, exc: TradingDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled domain errors."""
        logger.error("Unhandled domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
