from datetime import datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


# role and status stay free text: the store rejects unknown values per row,
# which the importer records as a row error.

class ImportUserItemDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    email: str
    password_hash: str
    full_name: str
    phone: str | None = None
    role: str


class ImportEventItemDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    organizer_id: UUID
    title: str
    description: str | None = None
    status: str
    is_public: bool = False
    max_participants: int | None = None
    cover_image: str | None = None


class ImportTicketItemDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    ticket_type_id: UUID
    buyer_id: UUID
    purchase_date: datetime | None = None
    status: str
    qr_code: str
    amount_paid: Decimal


class ImportUsersRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    continue_on_error: bool = False
    items: list[ImportUserItemDTO] = Field(default_factory=list)


class ImportEventsRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    continue_on_error: bool = False
    items: list[ImportEventItemDTO] = Field(default_factory=list)


class ImportTicketsRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    continue_on_error: bool = False
    items: list[ImportTicketItemDTO] = Field(default_factory=list)


class BatchRowErrorDTO(BaseModel):
    index: int
    error: str


class BatchResultDTO(BaseModel):
    total: int = 0
    success: int = 0
    failed: int = 0
    errors: list[BatchRowErrorDTO] = Field(default_factory=list)
