"""Address book endpoints."""

from fastapi import APIRouter, Depends, Query

from xmrsplit.api.contracts.address_book import (
    AddEntryRequest,
    AddressBookEntryModel,
    AddressBookResponse,
    SortField,
    SortOrder,
    UpdateEntryRequest,
)
from xmrsplit.api.contracts.wallets import SuccessResponse
from xmrsplit.services import AddressBookService, get_address_book_service

router = APIRouter()


@router.get("/address-book", response_model=AddressBookResponse)
async def list_entries(
    sort_by: SortField = Query("last_used", alias="sortBy"),
    order: SortOrder = Query("desc"),
    q: str = Query("", max_length=100, description="Filter by label, address or notes"),
    service: AddressBookService = Depends(get_address_book_service),
):
    if q:
        found = {e.id for e in await service.search(q)}
        entries = [e for e in await service.list_entries(sort_by, order) if e.id in found]
    else:
        entries = await service.list_entries(sort_by, order)
    return AddressBookResponse(
        entries=[AddressBookEntryModel.model_validate(e) for e in entries],
        count=len(entries),
    )


@router.post("/address-book", response_model=AddressBookEntryModel, status_code=201)
async def add_entry(
    body: AddEntryRequest,
    service: AddressBookService = Depends(get_address_book_service),
):
    entry = await service.add_entry(body.label, body.address, body.notes)
    return AddressBookEntryModel.model_validate(entry)


@router.patch("/address-book/{entry_id}", response_model=AddressBookEntryModel)
async def update_entry(
    entry_id: int,
    body: UpdateEntryRequest,
    service: AddressBookService = Depends(get_address_book_service),
):
    """Edit an entry; ``markUsed`` stamps it as just used."""
    entry = await service.update_entry(entry_id, body.label, body.address, body.notes)
    if body.mark_used:
        entry = await service.mark_used(entry_id)
    return AddressBookEntryModel.model_validate(entry)


@router.delete("/address-book/{entry_id}", response_model=SuccessResponse)
async def delete_entry(
    entry_id: int,
    service: AddressBookService = Depends(get_address_book_service),
):
    await service.delete_entry(entry_id)
    return SuccessResponse()
