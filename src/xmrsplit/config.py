"""Application configuration using pydantic-settings.

Covers the API service, the wallet server that sits next to
monero-wallet-rpc, and the swap provider endpoints.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/xmrsplit.db",
        description="Database connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    cors_origins: str = Field(
        default="http://localhost:3000", description="Comma-separated allowed CORS origins"
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    testnet: bool = Field(default=False, description="Use testnet/sandbox endpoints")

    # ======================
    # Wallet server (the service in front of monero-wallet-rpc)
    # ======================
    wallet_server_url: str = Field(
        default="http://localhost:3001", description="Wallet server base URL"
    )
    wallet_server_secret: str = Field(
        default="",
        description="Shared secret sent as X-API-Secret",
    )
    wallet_server_timeout: float = Field(
        default=120.0, description="Timeout for wallet server calls (seconds)"
    )

    # Settings read by the wallet server process itself
    walletd_host: str = Field(default="127.0.0.1", description="Wallet server host")
    walletd_port: int = Field(default=3001, description="Wallet server port")
    walletd_allowed_origins: str = Field(
        default="http://localhost:3000", description="Comma-separated allowed origins"
    )
    monero_wallet_rpc_url: str = Field(
        default="http://127.0.0.1:18082", description="monero-wallet-rpc base URL"
    )
    monero_wallet_rpc_user: str = Field(default="", description="monero-wallet-rpc login user")
    monero_wallet_rpc_password: str = Field(
        default="", description="monero-wallet-rpc login password"
    )
    wallet_file_prefix: str = Field(
        default="xmrsplit-wallet", description="Wallet file name prefix on the RPC host"
    )
    wallet_file_password: str = Field(
        default="", description="Password protecting the wallet files"
    )

    # ======================
    # Monero network
    # ======================
    monero_daemon_url: str = Field(
        default="https://xmr-node.cakewallet.com:18081", description="Monero daemon (node) URL"
    )
    monero_network: str = Field(default="mainnet", description="mainnet, testnet or stagenet")
    explorer: str = Field(default="xmrchain", description="Default block explorer key")

    # ======================
    # Swap providers
    # ======================
    changenow_api_key: str = Field(default="", description="ChangeNOW API key")
    changenow_sandbox: bool = Field(default=False, description="Use the ChangeNOW sandbox API")
    changenow_api_url: str = Field(
        default="https://api.changenow.io/v2", description="ChangeNOW production API"
    )
    changenow_sandbox_url: str = Field(
        default="https://api.sandbox.changenow.io/v2", description="ChangeNOW sandbox API"
    )
    btcswapxmr_api_url: str = Field(
        default="https://api.btcswapxmr.com", description="BTCSwapXMR API URL"
    )
    ghostswap_api_url: str = Field(
        default="https://api.ghostswap.io", description="GhostSwap API URL"
    )
    swap_order_ttl: int = Field(default=3600, description="Swap order validity in seconds")

    # ======================
    # Pricing
    # ======================
    coingecko_api_url: str = Field(
        default="https://api.coingecko.com/api/v3/simple/price",
        description="CoinGecko simple price endpoint",
    )
    price_cache_ttl: int = Field(default=300, description="Price cache TTL in seconds")

    # ======================
    # Payments & wallets
    # ======================
    max_payment_amount: Decimal = Field(
        default=Decimal("100"), description="Maximum single payment in XMR"
    )
    estimated_fee: Decimal = Field(
        default=Decimal("0.0001"), description="Estimated network fee per transaction (XMR)"
    )
    history_limit: int = Field(default=50, description="Records kept per history table")
    balance_cache_ttl: int = Field(default=300, description="Wallet balance cache TTL in seconds")

    # ======================
    # Transaction monitor
    # ======================
    min_confirmations: int = Field(default=10, description="Confirmations to mark a tx confirmed")
    max_tx_age_days: int = Field(default=30, description="Pending txs older than this fail")
    monitor_interval: int = Field(default=60, description="Seconds between monitor cycles")
    monitor_concurrency: int = Field(default=3, description="Concurrent daemon lookups")
    monitor_batch_delay: float = Field(default=1.0, description="Pause between lookup batches")
    run_monitor: bool = Field(default=True, description="Run the monitor loop inside the API process")

    # ======================
    # Rate limits (slowapi / limits syntax)
    # ======================
    rate_limit_pay: str = Field(default="5/minute")
    rate_limit_swap_quote: str = Field(default="10/minute")
    rate_limit_swap_execute: str = Field(default="10/hour")
    rate_limit_swap_status: str = Field(default="60/minute")
    rate_limit_tx_status: str = Field(default="10/minute")
    rate_limit_wallet_create: str = Field(default="3/minute")
    rate_limit_wallet_recover: str = Field(default="2 per 5 minutes")
    rate_limit_consolidate: str = Field(default="5/minute")

    # ======================
    # Safety Guards
    # ======================
    dry_run: bool = Field(
        default=False,
        description="Fall back to simulated swap quotes/orders when a provider fails",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def use_changenow_sandbox(self) -> bool:
        """ChangeNOW sandbox is used on testnet or when requested explicitly."""
        return self.testnet or self.changenow_sandbox

    @property
    def changenow_base_url(self) -> str:
        """ChangeNOW API base URL for the current mode."""
        if self.use_changenow_sandbox:
            return self.changenow_sandbox_url
        return self.changenow_api_url

    @property
    def allowed_origins(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def walletd_origins(self) -> list[str]:
        """Parse wallet server allowed origins into a list."""
        return [o.strip() for o in self.walletd_allowed_origins.split(",") if o.strip()]

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "testnet": self.testnet,
            "dry_run": self.dry_run,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "wallet_server": {
                "url": self.wallet_server_url,
                "secret": "***" if self.wallet_server_secret else "(not set)",
            },
            "monero": {
                "daemon": self.monero_daemon_url,
                "network": self.monero_network,
                "min_confirmations": self.min_confirmations,
            },
            "providers": {
                "changenow": {
                    "url": self.changenow_base_url,
                    "api_key": "***" if self.changenow_api_key else "(not set)",
                },
                "btcswapxmr": self.btcswapxmr_api_url,
                "ghostswap": self.ghostswap_api_url,
            },
            "limits": {
                "max_payment_amount": str(self.max_payment_amount),
                "pay": self.rate_limit_pay,
                "swap_execute": self.rate_limit_swap_execute,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
