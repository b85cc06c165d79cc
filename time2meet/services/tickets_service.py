import logging
from datetime import datetime, timezone
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from time2meet.core.audit import stamp_audit_context
from time2meet.core.transaction import TransactionManager
from time2meet.domain.exceptions import Conflict, InvalidInput, NotFound
from time2meet.domain.ticketing import crud
from time2meet.domain.value_objects import Money, is_nil


logger = logging.getLogger("time2meet.tickets")


def _parse_amount(amount_paid: str, currency: str | None) -> Money:
    try:
        return Money.parse(amount_paid, currency)
    except ValueError as e:
        raise InvalidInput(
            "amount_paid must be a non-negative decimal string",
            ctx={"amount_paid": amount_paid, "currency": currency}
        ) from e


async def purchase_ticket(
        tx: TransactionManager,
        *,
        actor_id: UUID | None,
        origin_ip: str | None,
        ticket_type_id: UUID | None,
        qr_code: str,
        amount_paid: str,
        currency: str | None = None
) -> UUID:
    """
    Sell one ticket of `ticket_type_id` to the actor.
    - Input is validated before any transaction is opened
    - The ticket type row lock serializes concurrent buyers, so capacity is never oversold
    - Sold out raises Conflict and leaves no trace (the whole transaction rolls back)
    """
    if is_nil(actor_id):
        raise InvalidInput("user_id is required")
    if is_nil(ticket_type_id):
        raise InvalidInput("ticket_type_id is required")
    if not qr_code:
        raise InvalidInput("qr_code is required")
    money = _parse_amount(amount_paid, currency)

    async def _purchase(db: AsyncSession) -> UUID:
        await stamp_audit_context(db, actor_id, origin_ip)

        capacity = await crud.lock_ticket_type_for_update(db, ticket_type_id)
        if capacity.is_sold_out:
            raise Conflict(
                "sold out",
                ctx={"ticket_type_id": ticket_type_id, "quantity_total": capacity.quantity_total}
            )

        return await crud.insert_paid_ticket(
            db,
            ticket_type_id=ticket_type_id,
            buyer_id=actor_id,
            purchased_at=datetime.now(timezone.utc),
            qr_code=qr_code,
            amount_paid=money
        )

    ticket_id = await tx.run(_purchase)
    logger.info(
        "ticket purchased ticket_id=%s ticket_type_id=%s buyer_id=%s amount=%s",
        ticket_id, ticket_type_id, actor_id, money
    )
    return ticket_id


async def validate_ticket(
        tx: TransactionManager,
        *,
        actor_id: UUID | None,
        origin_ip: str | None,
        ticket_id: UUID | None
) -> None:
    # Re-validating a used ticket succeeds and moves used_at forward
    if is_nil(actor_id):
        raise InvalidInput("user_id is required")
    if is_nil(ticket_id):
        raise InvalidInput("ticket_id is required")

    async def _validate(db: AsyncSession) -> None:
        await stamp_audit_context(db, actor_id, origin_ip)

        applied = await crud.mark_ticket_used(db, ticket_id, datetime.now(timezone.utc))
        if not applied:
            raise NotFound("ticket not found or invalid state", ctx={"ticket_id": ticket_id})

    await tx.run(_validate)
    logger.info("ticket validated ticket_id=%s by=%s", ticket_id, actor_id)
