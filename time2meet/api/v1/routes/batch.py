from typing import Annotated
from fastapi import APIRouter, Depends, status
from time2meet.core.dependencies import RequestActor, get_request_actor, get_tx_manager
from time2meet.core.transaction import TransactionManager
from time2meet.domain.batch.schemas import BatchResultDTO, ImportUsersRequestDTO, ImportEventsRequestDTO, \
    ImportTicketsRequestDTO
from time2meet.services import batch_service


router = APIRouter(prefix="/batch/import", tags=["batch"])

tx_dependency = Annotated[TransactionManager, Depends(get_tx_manager)]
actor_dependency = Annotated[RequestActor, Depends(get_request_actor)]


@router.post("/users", status_code=status.HTTP_200_OK, response_model=BatchResultDTO)
async def import_users(schema: ImportUsersRequestDTO, tx: tx_dependency, actor: actor_dependency):
    return await batch_service.import_users(
        tx,
        actor_id=actor.actor_id,
        origin_ip=actor.origin_ip,
        items=schema.items,
        continue_on_error=schema.continue_on_error
    )


@router.post("/events", status_code=status.HTTP_200_OK, response_model=BatchResultDTO)
async def import_events(schema: ImportEventsRequestDTO, tx: tx_dependency, actor: actor_dependency):
    return await batch_service.import_events(
        tx,
        actor_id=actor.actor_id,
        origin_ip=actor.origin_ip,
        items=schema.items,
        continue_on_error=schema.continue_on_error
    )


@router.post("/tickets", status_code=status.HTTP_200_OK, response_model=BatchResultDTO)
async def import_tickets(schema: ImportTicketsRequestDTO, tx: tx_dependency, actor: actor_dependency):
    return await batch_service.import_tickets(
        tx,
        actor_id=actor.actor_id,
        origin_ip=actor.origin_ip,
        items=schema.items,
        continue_on_error=schema.continue_on_error
    )
