from time2meet.core.database import Base
from enum import Enum
from decimal import Decimal
from datetime import datetime
from uuid import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DDL, Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String, Text, TIMESTAMP, Uuid, \
    event, func, text, Enum as SQLEnum


class TicketStatus(str, Enum):
    PAID = "paid"
    REFUNDED = "refunded"
    VOID = "void"
    USED = "used"


# Statuses that hold a seat of the ticket type's capacity
CAPACITY_HOLDING_STATUSES = (TicketStatus.PAID, TicketStatus.USED)


class TicketType(Base):
    __tablename__ = "ticket_types"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, server_default=text("gen_random_uuid()"))
    event_id: Mapped[UUID] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="USD")
    quantity_total: Mapped[int] = mapped_column(Integer, nullable=False)
    # Maintained by trg_tickets_recount_quantity_sold; application code never writes it
    quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    sale_start: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    sale_end: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_ticket_type_price_nonneg"),
        CheckConstraint("quantity_total >= 0", name="chk_ticket_type_total_nonneg"),
        CheckConstraint("quantity_sold >= 0 AND quantity_sold <= quantity_total", name="chk_ticket_type_sold_range"),
        CheckConstraint("sale_end IS NULL OR sale_start IS NULL OR sale_end >= sale_start",
                        name="chk_ticket_type_sale_window"),
    )


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, server_default=text("gen_random_uuid()"))
    ticket_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("ticket_types.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    buyer_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    purchase_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(),
                                                    nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        SQLEnum(TicketStatus, name="ticket_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        server_default=TicketStatus.PAID.value
    )
    qr_code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("amount_paid >= 0", name="chk_ticket_amount_paid_nonneg"),
    )


RECOUNT_QUANTITY_SOLD_FN = DDL("""
    CREATE OR REPLACE FUNCTION tickets_recount_quantity_sold() RETURNS trigger AS $$
    DECLARE
        affected uuid[];
    BEGIN
        IF TG_OP = 'INSERT' THEN
            affected := ARRAY[NEW.ticket_type_id];
        ELSIF TG_OP = 'DELETE' THEN
            affected := ARRAY[OLD.ticket_type_id];
        ELSE
            affected := ARRAY[NEW.ticket_type_id, OLD.ticket_type_id];
        END IF;

        UPDATE ticket_types tt
        SET quantity_sold = (
            SELECT count(*) FROM tickets t
            WHERE t.ticket_type_id = tt.id AND t.status IN ('paid', 'used')
        )
        WHERE tt.id = ANY(affected);

        RETURN NULL;
    END;
    $$ LANGUAGE plpgsql
""")

RECOUNT_QUANTITY_SOLD_TRIGGER = DDL("""
    CREATE TRIGGER trg_tickets_recount_quantity_sold
    AFTER INSERT OR DELETE OR UPDATE OF status, ticket_type_id ON tickets
    FOR EACH ROW EXECUTE FUNCTION tickets_recount_quantity_sold()
""")

DROP_RECOUNT_QUANTITY_SOLD_FN = DDL("DROP FUNCTION IF EXISTS tickets_recount_quantity_sold()")

event.listen(Ticket.__table__, "after_create", RECOUNT_QUANTITY_SOLD_FN.execute_if(dialect="postgresql"))
event.listen(Ticket.__table__, "after_create", RECOUNT_QUANTITY_SOLD_TRIGGER.execute_if(dialect="postgresql"))
event.listen(Ticket.__table__, "after_drop", DROP_RECOUNT_QUANTITY_SOLD_FN.execute_if(dialect="postgresql"))
