from sqlalchemy.orm import mapped_column, Mapped
from sqlalchemy import Text, Integer, ForeignKey, CheckConstraint, Boolean, TIMESTAMP, Uuid, func, text, \
    Enum as SQLEnum
from time2meet.core.database import Base
from datetime import datetime
from uuid import UUID
import enum


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, server_default=text("gen_random_uuid()"))
    organizer_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[EventStatus] = mapped_column(
        SQLEnum(EventStatus, name="event_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        server_default=EventStatus.DRAFT.value
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("max_participants IS NULL OR max_participants > 0", name="chk_event_max_participants"),
    )
