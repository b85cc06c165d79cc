import logging
from typing import Awaitable, Callable, Sequence, TypeVar
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError, DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import TextClause
from time2meet.domain.batch import crud
from time2meet.domain.batch.schemas import BatchResultDTO, BatchRowErrorDTO, ImportUserItemDTO, \
    ImportEventItemDTO, ImportTicketItemDTO
from time2meet.domain.exceptions import BatchAborted, Internal


logger = logging.getLogger("time2meet.batch")

T = TypeVar("T")
RowInserter = Callable[[AsyncSession, T], Awaitable[None]]

# One name for every row: each savepoint is released before the next one opens, so they never nest
SAVEPOINT = text("SAVEPOINT batch_row")
ROLLBACK_TO_SAVEPOINT = text("ROLLBACK TO SAVEPOINT batch_row")
RELEASE_SAVEPOINT = text("RELEASE SAVEPOINT batch_row")


def row_error_message(exc: SQLAlchemyError) -> str:
    # DBAPIError's own str() embeds the SQL text and parameters; keep only the driver message
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig) or exc.orig.__class__.__name__
    return str(exc).split("\n", 1)[0]


async def _savepoint_step(db: AsyncSession, stmt: TextClause, failure: str, kind: str, index: int) -> None:
    try:
        await db.execute(stmt)
    except SQLAlchemyError as e:
        raise Internal(failure, ctx={"kind": kind, "index": index}) from e


async def import_rows(
        db: AsyncSession,
        items: Sequence[T],
        insert_row: RowInserter,
        *,
        kind: str,
        continue_on_error: bool
) -> BatchResultDTO:
    """
    Insert `items` in order inside the caller's transaction, one savepoint per row.
    - A failing row is rolled back to its savepoint, the savepoint is released,
      and the row is recorded with its 0-based index
    - continue_on_error=True keeps going; False raises BatchAborted on the first failure,
      which rolls back the caller's whole transaction (rows that succeeded so far included)
    """
    result = BatchResultDTO(total=len(items))

    for index, item in enumerate(items):
        await _savepoint_step(db, SAVEPOINT, "savepoint failed", kind, index)

        try:
            await insert_row(db, item)
        except SQLAlchemyError as e:
            await _savepoint_step(db, ROLLBACK_TO_SAVEPOINT, "rollback to savepoint failed", kind, index)
            await _savepoint_step(db, RELEASE_SAVEPOINT, "release savepoint failed", kind, index)

            message = row_error_message(e)
            logger.warning("batch import %s row failed index=%d error=%s", kind, index, message)
            result.failed += 1
            result.errors.append(BatchRowErrorDTO(index=index, error=message))

            if not continue_on_error:
                raise BatchAborted(
                    f"batch import {kind} failed",
                    result=result,
                    ctx={"index": index, "error": message}
                ) from e
            continue

        await _savepoint_step(db, RELEASE_SAVEPOINT, "release savepoint failed", kind, index)
        result.success += 1

    return result


async def import_users(
        db: AsyncSession,
        items: Sequence[ImportUserItemDTO],
        continue_on_error: bool
) -> BatchResultDTO:
    return await import_rows(db, items, crud.insert_user_row, kind="users", continue_on_error=continue_on_error)


async def import_events(
        db: AsyncSession,
        items: Sequence[ImportEventItemDTO],
        continue_on_error: bool
) -> BatchResultDTO:
    return await import_rows(db, items, crud.insert_event_row, kind="events", continue_on_error=continue_on_error)


async def import_tickets(
        db: AsyncSession,
        items: Sequence[ImportTicketItemDTO],
        continue_on_error: bool
) -> BatchResultDTO:
    return await import_rows(db, items, crud.insert_ticket_row, kind="tickets", continue_on_error=continue_on_error)
