from uuid import UUID
from pydantic import BaseModel, ConfigDict


class PurchaseTicketRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    ticket_type_id: UUID
    qr_code: str
    # Decimal string; parsed and normalized by the purchase service
    amount_paid: str
    currency: str | None = None


class TicketIdReadDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    ticket_id: UUID
