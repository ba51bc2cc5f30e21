"""Application services for swaps and the address book."""

from typing import Optional

from xmrsplit.config import get_settings
from xmrsplit.services.address_book import (
    AddressBookError,
    AddressBookNotFoundError,
    AddressBookService,
)
from xmrsplit.services.swap_service import SwapService
from xmrsplit.swap_providers.factory import get_aggregator

_swap_service: Optional[SwapService] = None
_address_book: Optional[AddressBookService] = None


def get_swap_service() -> SwapService:
    global _swap_service
    if _swap_service is None:
        settings = get_settings()
        _swap_service = SwapService(
            get_aggregator(),
            history_limit=settings.history_limit,
            allow_testnet=settings.testnet,
        )
    return _swap_service


def set_swap_service(service: Optional[SwapService]) -> None:
    global _swap_service
    _swap_service = service


def get_address_book_service() -> AddressBookService:
    global _address_book
    if _address_book is None:
        _address_book = AddressBookService(allow_testnet=get_settings().testnet)
    return _address_book


def set_address_book_service(service: Optional[AddressBookService]) -> None:
    global _address_book
    _address_book = service


__all__ = [
    "AddressBookError",
    "AddressBookNotFoundError",
    "AddressBookService",
    "SwapService",
    "get_address_book_service",
    "get_swap_service",
    "set_address_book_service",
    "set_swap_service",
]
