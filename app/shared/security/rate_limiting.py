"""
Rate limiting configuration and setup.

Uses slowapi to enforce per-endpoint rate limits keyed by client address.
Auth routes get the tightest limit to slow down credential guessing;
trade submission has its own bucket. Limits are read from settings at
request time so they can be tuned per environment.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings


def auth_rate_limit() -> str:
    return settings.rate_limit_auth


def trades_rate_limit() -> str:
    return settings.rate_limit_trades


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Handle rate limit exceeded errors with the standard error body.

    Args:
        _request: The incoming HTTP request.
        exc: The rate limit exceeded exception.

    Returns:
        A 429 JSON response naming the exceeded limit.
    """
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "detail": str(exc.detail)},
    )
