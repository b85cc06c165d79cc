from sqlalchemy import insert, func
from sqlalchemy.ext.asyncio import AsyncSession
from time2meet.core.text_utils import empty_to_none
from time2meet.domain.batch.schemas import ImportUserItemDTO, ImportEventItemDTO, ImportTicketItemDTO
from time2meet.domain.users.models import User
from time2meet.domain.events.models import Event
from time2meet.domain.ticketing.models import Ticket


async def insert_user_row(db: AsyncSession, item: ImportUserItemDTO) -> None:
    await db.execute(
        insert(User).values(
            email=item.email,
            password_hash=item.password_hash,
            full_name=item.full_name,
            phone=empty_to_none(item.phone),
            role=item.role,
            is_active=True
        )
    )


async def insert_event_row(db: AsyncSession, item: ImportEventItemDTO) -> None:
    await db.execute(
        insert(Event).values(
            organizer_id=item.organizer_id,
            title=item.title,
            description=empty_to_none(item.description),
            status=item.status,
            is_public=item.is_public,
            max_participants=item.max_participants,
            cover_image=empty_to_none(item.cover_image)
        )
    )


async def insert_ticket_row(db: AsyncSession, item: ImportTicketItemDTO) -> None:
    await db.execute(
        insert(Ticket).values(
            ticket_type_id=item.ticket_type_id,
            buyer_id=item.buyer_id,
            purchase_date=item.purchase_date if item.purchase_date is not None else func.now(),
            status=item.status,
            qr_code=item.qr_code,
            amount_paid=item.amount_paid
        )
    )
