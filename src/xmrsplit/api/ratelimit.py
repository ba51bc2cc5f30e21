"""Per-client rate limiting with slowapi.

Clients are keyed by the first X-Forwarded-For hop, falling back to the
socket address. Storage is in-memory, so limits are per process.
"""

import logging

from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from xmrsplit.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 60


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request) or "unknown"


limiter = Limiter(
    key_func=client_key,
    enabled=True,
    swallow_errors=False,
    headers_enabled=False,
)


# Limits are read from settings at request time
def pay_limit() -> str:
    return get_settings().rate_limit_pay


def swap_quote_limit() -> str:
    return get_settings().rate_limit_swap_quote


def swap_execute_limit() -> str:
    return get_settings().rate_limit_swap_execute


def swap_status_limit() -> str:
    return get_settings().rate_limit_swap_status


def tx_status_limit() -> str:
    return get_settings().rate_limit_tx_status


def wallet_create_limit() -> str:
    return get_settings().rate_limit_wallet_create


def wallet_recover_limit() -> str:
    return get_settings().rate_limit_wallet_recover


def consolidate_limit() -> str:
    return get_settings().rate_limit_consolidate


def rate_limit_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    rate_exc = exc if isinstance(exc, RateLimitExceeded) else None

    retry_after = DEFAULT_RETRY_AFTER
    limit_detail = "Try again later."
    if rate_exc is not None and getattr(rate_exc, "limit", None) is not None:
        item = rate_exc.limit.limit
        retry_after = item.get_expiry()
        limit_detail = f"Maximum {item.amount} requests per {retry_after} seconds."

    logger.warning(f"Rate limit exceeded: {limit_detail}")
    return JSONResponse(
        status_code=429,
        content={
            "error": f"Rate limit exceeded. {limit_detail}",
            "retryAfter": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """Attach the limiter and its 429 handler to the app."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
