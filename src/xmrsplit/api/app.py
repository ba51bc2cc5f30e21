"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from xmrsplit.api.errors import register_exception_handlers
from xmrsplit.api.ratelimit import setup_rate_limiting
from xmrsplit.api.security import SecurityHeadersMiddleware
from xmrsplit.config import Settings, get_settings
from xmrsplit.ledger.database import close_db, init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await close_db()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="xmrsplit API",
        description="Split-wallet Monero payments and swaps into XMR",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(SecurityHeadersMiddleware, production=settings.is_production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    setup_rate_limiting(app)
    register_exception_handlers(app)

    # Register routes
    from xmrsplit.api.routes import (
        address_book,
        health,
        payments,
        prices,
        swaps,
        tx_status,
        wallets,
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(payments.router, prefix="/api", tags=["Payments"])
    app.include_router(wallets.router, prefix="/api", tags=["Wallets"])
    app.include_router(swaps.router, prefix="/api", tags=["Swaps"])
    app.include_router(tx_status.router, prefix="/api", tags=["Transactions"])
    app.include_router(prices.router, prefix="/api", tags=["Prices"])
    app.include_router(address_book.router, prefix="/api", tags=["Address Book"])

    return app


# Default app instance
app = create_app()
