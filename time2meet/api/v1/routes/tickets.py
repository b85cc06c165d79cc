from typing import Annotated
from uuid import UUID
from fastapi import APIRouter, Depends, status
from time2meet.core.dependencies import RequestActor, get_request_actor, get_tx_manager
from time2meet.core.transaction import TransactionManager
from time2meet.domain.ticketing.schemas import PurchaseTicketRequestDTO, TicketIdReadDTO
from time2meet.services import tickets_service


router = APIRouter(prefix="/tickets", tags=["tickets"])

tx_dependency = Annotated[TransactionManager, Depends(get_tx_manager)]
actor_dependency = Annotated[RequestActor, Depends(get_request_actor)]


@router.post(
    "/purchase",
    status_code=status.HTTP_201_CREATED,
    response_model=TicketIdReadDTO
)
async def purchase_ticket(schema: PurchaseTicketRequestDTO, tx: tx_dependency, actor: actor_dependency):
    ticket_id = await tickets_service.purchase_ticket(
        tx,
        actor_id=actor.actor_id,
        origin_ip=actor.origin_ip,
        ticket_type_id=schema.ticket_type_id,
        qr_code=schema.qr_code,
        amount_paid=schema.amount_paid,
        currency=schema.currency
    )
    return TicketIdReadDTO(ticket_id=ticket_id)


@router.post(
    "/{ticket_id}/validate",
    status_code=status.HTTP_204_NO_CONTENT
)
async def validate_ticket(ticket_id: UUID, tx: tx_dependency, actor: actor_dependency):
    await tickets_service.validate_ticket(
        tx,
        actor_id=actor.actor_id,
        origin_ip=actor.origin_ip,
        ticket_id=ticket_id
    )
