"""
Secure HTTP headers middleware.

Adds security-related headers to every HTTP response. API payloads carry
balances and tokens, so they are also marked non-cacheable. The SSE
stream passes through unchanged apart from the headers; WebSocket
traffic is not touched by this middleware.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

SECURE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cache-Control": "no-store",
}
HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds secure HTTP headers to every response.

    Args:
        app: The wrapped ASGI application.
        enable_hsts: Also send Strict-Transport-Security (off in debug).
    """

    def __init__(self, app: ASGIApp, enable_hsts: bool = True) -> None:
        super().__init__(app)
        self._headers = dict(SECURE_HEADERS)
        if enable_hsts:
            self._headers[HSTS_HEADER[0]] = HSTS_HEADER[1]

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for header_name, header_value in self._headers.items():
            response.headers.setdefault(header_name, header_value)
        return response
