"""Address book contracts."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import ConfigDict, Field

from xmrsplit.api.contracts.base import CamelModel

SortField = Literal["label", "last_used", "created_at"]
SortOrder = Literal["asc", "desc"]


class AddressBookEntryModel(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    label: str
    address: str
    notes: Optional[str] = None
    created_at: datetime
    last_used: Optional[datetime] = None


class AddEntryRequest(CamelModel):
    label: str = Field(..., max_length=50)
    address: str = Field(..., min_length=95, max_length=106)
    notes: Optional[str] = Field(None, max_length=200)


class UpdateEntryRequest(CamelModel):
    label: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, min_length=95, max_length=106)
    notes: Optional[str] = Field(None, max_length=200)
    mark_used: bool = False


class AddressBookResponse(CamelModel):
    entries: list[AddressBookEntryModel]
    count: int
