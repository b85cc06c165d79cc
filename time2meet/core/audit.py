import logging
from dataclasses import dataclass
from uuid import UUID
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from time2meet.domain.exceptions import Internal
from time2meet.domain.value_objects import is_nil


logger = logging.getLogger("time2meet.audit")

AUDIT_USER_ID_KEY = "app.user_id"
AUDIT_IP_KEY = "app.ip"

# is_local=true scopes the setting to the current transaction
SET_CONFIG = text("SELECT set_config(:key, :value, true)")
READ_CONFIG = text("SELECT current_setting(:user_key, true) AS user_id, current_setting(:ip_key, true) AS ip")


@dataclass(frozen=True)
class AuditStamp:
    actor_id: UUID | None
    origin_ip: str | None


async def _set_config(db: AsyncSession, key: str, value: str, field: str) -> None:
    try:
        await db.execute(SET_CONFIG, {"key": key, "value": value})
    except SQLAlchemyError as e:
        logger.exception("Audit stamp failed", extra={"audit_key": key})
        raise Internal(f"set audit {field} failed") from e


async def stamp_audit_context(db: AsyncSession, actor_id: UUID | None, origin_ip: str | None) -> None:
    """
    Stamp the actor and origin read by the store's audit triggers.
    Must run before the first mutating statement of the transaction.
    Anonymous writes (system jobs) skip the actor; a missing origin skips the address.
    """
    if not is_nil(actor_id):
        await _set_config(db, AUDIT_USER_ID_KEY, str(actor_id), "user_id")
    if origin_ip:
        await _set_config(db, AUDIT_IP_KEY, origin_ip, "ip")


async def read_audit_context(db: AsyncSession) -> AuditStamp:
    result = await db.execute(READ_CONFIG, {"user_key": AUDIT_USER_ID_KEY, "ip_key": AUDIT_IP_KEY})
    row = result.one()
    try:
        actor_id = UUID(row.user_id) if row.user_id else None
    except ValueError as e:
        raise Internal("malformed audit user_id in transaction", ctx={"value": row.user_id}) from e
    return AuditStamp(actor_id=actor_id, origin_ip=row.ip or None)
