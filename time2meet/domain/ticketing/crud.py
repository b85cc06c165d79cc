from datetime import datetime
from uuid import UUID
from sqlalchemy import select, update, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from time2meet.domain.exceptions import NotFound, Internal
from time2meet.domain.ticketing.models import TicketType, Ticket, TicketStatus
from time2meet.domain.value_objects import Capacity, Money


async def lock_ticket_type_for_update(db: AsyncSession, ticket_type_id: UUID) -> Capacity:
    """
    Row-locks the ticket type until the transaction ends and returns its counters.
    A concurrent purchase of the same type blocks here until the holder commits or rolls back,
    then reads the post-commit counters.
    """
    stmt = (
        select(TicketType.quantity_total, TicketType.quantity_sold)
        .where(TicketType.id == ticket_type_id)
        .with_for_update()
    )
    try:
        result = await db.execute(stmt)
        row = result.first()
    except SQLAlchemyError as e:
        raise Internal("lock ticket type failed", ctx={"ticket_type_id": ticket_type_id}) from e

    if row is None:
        raise NotFound("ticket type not found", ctx={"ticket_type_id": ticket_type_id})

    try:
        return Capacity(quantity_total=row.quantity_total, quantity_sold=row.quantity_sold)
    except ValueError as e:
        raise Internal("malformed ticket type counters", ctx={"ticket_type_id": ticket_type_id}) from e


async def insert_paid_ticket(
        db: AsyncSession,
        *,
        ticket_type_id: UUID,
        buyer_id: UUID,
        purchased_at: datetime,
        qr_code: str,
        amount_paid: Money
) -> UUID:
    # No capacity check here: callers lock the ticket type and check it in the same transaction
    stmt = (
        insert(Ticket)
        .values(
            ticket_type_id=ticket_type_id,
            buyer_id=buyer_id,
            purchase_date=purchased_at,
            status=TicketStatus.PAID,
            qr_code=qr_code,
            amount_paid=amount_paid.amount
        )
        .returning(Ticket.id)
    )
    try:
        ticket_id = await db.scalar(stmt)
    except SQLAlchemyError as e:
        raise Internal("insert ticket failed", ctx={"ticket_type_id": ticket_type_id}) from e

    if not isinstance(ticket_id, UUID):
        raise Internal("invalid ticket id returned from db", ctx={"ticket_type_id": ticket_type_id})
    return ticket_id


async def mark_ticket_used(db: AsyncSession, ticket_id: UUID, used_at: datetime) -> bool:
    """
    paid -> used, or re-stamp used_at of an already used ticket.
    Returns False when the ticket is missing or refunded/void.
    """
    stmt = (
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.status.in_([TicketStatus.PAID, TicketStatus.USED]))
        .values(status=TicketStatus.USED, used_at=used_at)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise Internal("validate ticket failed", ctx={"ticket_id": ticket_id}) from e
    return (result.rowcount or 0) > 0
