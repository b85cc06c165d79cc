import logging
from typing import Awaitable, Callable, Sequence
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from time2meet.core import config
from time2meet.core.audit import stamp_audit_context
from time2meet.core.transaction import TransactionManager
from time2meet.domain.batch import importer
from time2meet.domain.batch.schemas import BatchResultDTO, ImportUserItemDTO, ImportEventItemDTO, \
    ImportTicketItemDTO
from time2meet.domain.exceptions import InvalidInput


logger = logging.getLogger("time2meet.batch")


def _require_batch_size(kind: str, items: Sequence) -> None:
    if len(items) > config.BATCH_MAX_ITEMS:
        raise InvalidInput(
            f"too many {kind} in one batch",
            ctx={"items": len(items), "max_items": config.BATCH_MAX_ITEMS}
        )


async def _run_import(
        tx: TransactionManager,
        kind: str,
        actor_id: UUID | None,
        origin_ip: str | None,
        items: Sequence,
        do_import: Callable[[AsyncSession], Awaitable[BatchResultDTO]]
) -> BatchResultDTO:
    _require_batch_size(kind, items)

    async def _import(db: AsyncSession) -> BatchResultDTO:
        await stamp_audit_context(db, actor_id, origin_ip)
        return await do_import(db)

    result = await tx.run(_import)
    logger.info(
        "batch import %s committed total=%d success=%d failed=%d actor=%s",
        kind, result.total, result.success, result.failed, actor_id
    )
    return result


async def import_users(
        tx: TransactionManager,
        *,
        actor_id: UUID | None,
        origin_ip: str | None,
        items: Sequence[ImportUserItemDTO],
        continue_on_error: bool
) -> BatchResultDTO:
    return await _run_import(
        tx, "users", actor_id, origin_ip, items,
        lambda db: importer.import_users(db, items, continue_on_error)
    )


async def import_events(
        tx: TransactionManager,
        *,
        actor_id: UUID | None,
        origin_ip: str | None,
        items: Sequence[ImportEventItemDTO],
        continue_on_error: bool
) -> BatchResultDTO:
    return await _run_import(
        tx, "events", actor_id, origin_ip, items,
        lambda db: importer.import_events(db, items, continue_on_error)
    )


async def import_tickets(
        tx: TransactionManager,
        *,
        actor_id: UUID | None,
        origin_ip: str | None,
        items: Sequence[ImportTicketItemDTO],
        continue_on_error: bool
) -> BatchResultDTO:
    return await _run_import(
        tx, "tickets", actor_id, origin_ip, items,
        lambda db: importer.import_tickets(db, items, continue_on_error)
    )
