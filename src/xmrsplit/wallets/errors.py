"""Wallet errors."""

from typing import Optional

from xmrsplit.crypto import InvalidPasswordError
from xmrsplit.swap_providers.errors import InsufficientFundsError


class WalletError(Exception):
    """Base error for split wallet operations."""

    code = "wallet_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class WalletsExistError(WalletError):
    """Wallets were already created."""

    code = "wallets_exist"


class WalletsNotFoundError(WalletError):
    """No wallets have been created yet."""

    code = "wallets_not_found"


class WalletServerError(WalletError):
    """The wallet server reported a failure."""

    code = "wallet_server_error"


__all__ = [
    "InsufficientFundsError",
    "InvalidPasswordError",
    "WalletError",
    "WalletServerError",
    "WalletsExistError",
    "WalletsNotFoundError",
]
