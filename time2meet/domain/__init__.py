from .users.models import User, UserRole
from .events.models import Event, EventStatus
from .ticketing.models import TicketType, Ticket, TicketStatus

__all__ = (
    "User", "UserRole", "Event", "EventStatus", "TicketType", "Ticket", "TicketStatus"
)
