"""Security response headers (HSTS, CSP, framing, sniffing, referrer)."""

from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CONNECT_SOURCES = (
    "https://api.changenow.io https://api.btcswapxmr.com https://xmr-node.cakewallet.com:18081"
)

_CSP_COMMON = [
    "style-src 'self' 'unsafe-inline'",
    "img-src 'self' data: https:",
    "font-src 'self' data:",
    f"connect-src 'self' {CONNECT_SOURCES}",
    "frame-ancestors 'none'",
    "base-uri 'self'",
    "form-action 'self'",
]

DEVELOPMENT_CSP = "; ".join(
    ["default-src 'self'", "script-src 'self' 'unsafe-eval' 'unsafe-inline'", *_CSP_COMMON]
)

PRODUCTION_CSP = "; ".join(
    ["default-src 'self'", "script-src 'self'", *_CSP_COMMON, "upgrade-insecure-requests"]
)


def security_headers(production: bool = False) -> dict[str, str]:
    """Headers added to every response."""
    return {
        "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=()",
        "Content-Security-Policy": PRODUCTION_CSP if production else DEVELOPMENT_CSP,
        "X-XSS-Protection": "1; mode=block",
    }


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the security headers to every response."""

    def __init__(self, app, production: bool = False):
        super().__init__(app)
        self.headers = security_headers(production)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for key, value in self.headers.items():
            response.headers.setdefault(key, value)
        return response
