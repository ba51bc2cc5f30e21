"""Translate domain errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from xmrsplit.crypto import InvalidPasswordError
from xmrsplit.services.address_book import AddressBookError
from xmrsplit.swap_providers.errors import (
    InsufficientFundsError,
    NetworkError,
    ProviderError,
    SwapError,
    SwapTimeoutError,
    SwapValidationError,
)
from xmrsplit.utils.locks import LockTimeoutError
from xmrsplit.wallets.errors import (
    WalletError,
    WalletServerError,
    WalletsExistError,
    WalletsNotFoundError,
)

logger = logging.getLogger(__name__)


def swap_error_response(error: SwapError, fallback: str = "Swap creation failed") -> JSONResponse:
    """Classify a swap failure.

    Inactive pairs and offline providers are 503, amount and address
    problems are 400, network failures are a retryable 503, anything else
    is a 500 carrying the provider message.
    """
    message = error.message
    lowered = message.lower()

    if "pair_is_inactive" in lowered:
        return JSONResponse(
            status_code=503,
            content={"error": "This currency pair is currently unavailable. Try another provider."},
        )
    if isinstance(error, ProviderError):
        return JSONResponse(
            status_code=503,
            content={"error": message, "provider": error.provider, "details": error.details},
        )
    if "out_of_range" in lowered or "min/max" in lowered:
        return JSONResponse(
            status_code=400,
            content={"error": "Amount is outside the allowed limits. Check minimum/maximum amounts."},
        )
    if "invalid_address" in lowered:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid XMR address. Please check and try again."},
        )
    if isinstance(error, (SwapValidationError, InsufficientFundsError)):
        return JSONResponse(status_code=400, content={"error": message})
    if (
        isinstance(error, (NetworkError, SwapTimeoutError))
        or "network" in lowered
        or "timeout" in lowered
    ):
        return JSONResponse(
            status_code=503,
            content={"error": "Network error. Please try again in a moment.", "retryable": True},
        )

    logger.error(f"{fallback}: {message}")
    return JSONResponse(
        status_code=500,
        content={
            "error": fallback,
            "details": message,
            "retryable": error.retryable
            or ("invalid" not in lowered and "inactive" not in lowered),
        },
    )


def validation_details(exc: RequestValidationError) -> list[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc'] if p not in ('body', 'query'))}: {err['msg']}"
        for err in exc.errors()
    ]


def _wallet_status(error: WalletError) -> int:
    if isinstance(error, WalletsExistError):
        return 409
    if isinstance(error, WalletsNotFoundError):
        return 404
    if isinstance(error, WalletServerError):
        return 502
    return 400


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers used by every route."""

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": validation_details(exc)},
        )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(WalletError)
    async def wallet_error(request: Request, exc: WalletError):
        return JSONResponse(status_code=_wallet_status(exc), content=exc.to_dict())

    @app.exception_handler(InvalidPasswordError)
    async def invalid_password(request: Request, exc: InvalidPasswordError):
        return JSONResponse(status_code=401, content={"error": "Invalid password"})

    @app.exception_handler(AddressBookError)
    async def address_book_error(request: Request, exc: AddressBookError):
        status_code = {"not_found": 404, "duplicate": 409}.get(exc.code, 400)
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(SwapError)
    async def swap_error(request: Request, exc: SwapError):
        return swap_error_response(exc, fallback="Swap request failed")

    @app.exception_handler(LockTimeoutError)
    async def lock_timeout(request: Request, exc: LockTimeoutError):
        return JSONResponse(status_code=409, content={"error": "Operation already in progress"})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
