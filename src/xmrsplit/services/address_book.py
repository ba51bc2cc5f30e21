"""Saved payment recipients."""

import logging
from datetime import datetime
from typing import Optional

from xmrsplit.ledger import AddressBookEntry, LedgerRepository, get_db
from xmrsplit.ledger.models import utcnow
from xmrsplit.utils.monero import validate_monero_address

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 50
MAX_NOTES_LENGTH = 200

SORT_FIELDS = ("label", "last_used", "created_at")
SORT_ORDERS = ("asc", "desc")


class AddressBookError(Exception):
    """Invalid address book change."""

    def __init__(self, message: str, code: str = "invalid"):
        super().__init__(message)
        self.message = message
        self.code = code


class AddressBookNotFoundError(AddressBookError):
    def __init__(self, entry_id: int):
        super().__init__(f"Entry {entry_id} not found", code="not_found")


def _check_label(label: Optional[str]) -> str:
    if not label or not label.strip():
        raise AddressBookError("Label is required")
    label = label.strip()
    if len(label) > MAX_LABEL_LENGTH:
        raise AddressBookError(f"Label too long (max {MAX_LABEL_LENGTH} characters)")
    return label


def _check_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    notes = notes.strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise AddressBookError(f"Notes too long (max {MAX_NOTES_LENGTH} characters)")
    return notes or None


def _sort_key(field: str):
    if field == "label":
        return lambda e: e.label.lower()
    if field == "created_at":
        return lambda e: e.created_at
    return lambda e: e.last_used or datetime.min


class AddressBookService:
    """Add, edit and look up saved recipient addresses."""

    def __init__(self, allow_testnet: bool = False):
        self.allow_testnet = allow_testnet

    def _check_address(self, address: Optional[str]) -> str:
        validation = validate_monero_address(address, allow_testnet=self.allow_testnet)
        if not validation.valid:
            raise AddressBookError(validation.error or "Invalid address")
        return address.strip()

    async def add_entry(
        self,
        label: str,
        address: str,
        notes: Optional[str] = None,
    ) -> AddressBookEntry:
        """Add an entry. Addresses are unique regardless of case.

        Raises:
            AddressBookError: Invalid field or duplicate address
        """
        label = _check_label(label)
        address = self._check_address(address)
        notes = _check_notes(notes)

        async with get_db() as session:
            repo = LedgerRepository(session)
            duplicate = await repo.find_address_book_entry(address)
            if duplicate is not None:
                raise AddressBookError(
                    f'Address already exists with label "{duplicate.label}"', code="duplicate"
                )
            entry = await repo.add_address_book_entry(label, address, notes)

        logger.info(f"Address book entry added: {entry.id} ({label})")
        return entry

    async def update_entry(
        self,
        entry_id: int,
        label: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AddressBookEntry:
        """Change the given fields of an entry."""
        if label is not None:
            label = _check_label(label)
        if address is not None:
            address = self._check_address(address)
        notes = _check_notes(notes)

        async with get_db() as session:
            repo = LedgerRepository(session)
            entry = await repo.get_address_book_entry(entry_id)
            if entry is None:
                raise AddressBookNotFoundError(entry_id)

            if address is not None:
                duplicate = await repo.find_address_book_entry(address)
                if duplicate is not None and duplicate.id != entry_id:
                    raise AddressBookError(
                        f'Address already exists with label "{duplicate.label}"', code="duplicate"
                    )
                entry.address = address
            if label is not None:
                entry.label = label
            if notes is not None:
                entry.notes = notes
            await session.flush()
        return entry

    async def delete_entry(self, entry_id: int) -> None:
        async with get_db() as session:
            if not await LedgerRepository(session).delete_address_book_entry(entry_id):
                raise AddressBookNotFoundError(entry_id)

    async def mark_used(self, entry_id: int) -> Optional[AddressBookEntry]:
        async with get_db() as session:
            entry = await LedgerRepository(session).get_address_book_entry(entry_id)
            if entry is not None:
                entry.last_used = utcnow()
                await session.flush()
        return entry

    async def find_by_address(self, address: str) -> Optional[AddressBookEntry]:
        async with get_db() as session:
            return await LedgerRepository(session).find_address_book_entry(address)

    async def list_entries(
        self,
        sort_by: str = "last_used",
        order: str = "desc",
    ) -> list[AddressBookEntry]:
        """All entries sorted by label, last use or creation time.

        Entries never used sort as the oldest.
        """
        if sort_by not in SORT_FIELDS:
            raise AddressBookError(f"Unknown sort field: {sort_by}")
        if order not in SORT_ORDERS:
            raise AddressBookError(f"Unknown sort order: {order}")

        async with get_db() as session:
            entries = await LedgerRepository(session).get_address_book()
        return sorted(entries, key=_sort_key(sort_by), reverse=order == "desc")

    async def search(self, query: str) -> list[AddressBookEntry]:
        """Entries whose label, address or notes contain the query."""
        async with get_db() as session:
            entries = await LedgerRepository(session).get_address_book()
        if not query or not query.strip():
            return entries
        needle = query.strip().lower()
        return [
            e for e in entries
            if needle in e.label.lower()
            or needle in e.address.lower()
            or (e.notes and needle in e.notes.lower())
        ]

    async def clear(self) -> int:
        async with get_db() as session:
            return await LedgerRepository(session).clear_address_book()
