from dataclasses import dataclass
from uuid import UUID
from fastapi import Request
from time2meet.core.config import TX_TIMEOUT_SECONDS
from time2meet.core.database import AsyncSessionLocal
from time2meet.core.transaction import TransactionManager
from time2meet.domain.exceptions import InvalidInput

ACTOR_HEADER = "X-User-Id"

_tx_manager = TransactionManager(AsyncSessionLocal, timeout=TX_TIMEOUT_SECONDS)


@dataclass(frozen=True)
class RequestActor:
    """Caller identity as supplied by the edge; authentication happens upstream."""
    actor_id: UUID | None
    origin_ip: str | None


def _client_ip(request: Request) -> str | None:
    xff = request.headers.get("x-forwarded-for")
    return xff.split(",")[0].strip() if xff else (request.client.host if request.client else None)


def get_tx_manager() -> TransactionManager:
    return _tx_manager


def get_request_actor(request: Request) -> RequestActor:
    raw = (request.headers.get(ACTOR_HEADER) or "").strip()
    actor_id = None
    if raw:
        try:
            actor_id = UUID(raw)
        except ValueError:
            raise InvalidInput(f"invalid {ACTOR_HEADER} header", ctx={"value": raw})
    return RequestActor(actor_id=actor_id, origin_ip=_client_ip(request))
