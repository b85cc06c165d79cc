import asyncio
import logging
from typing import Awaitable, Callable, TypeVar
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from time2meet.core.ctx import IN_TRANSACTION_CTX
from time2meet.domain.exceptions import Internal, Unavailable


logger = logging.getLogger("time2meet.tx")

T = TypeVar("T")

_INFRA_ERRORS = (SQLAlchemyError, OSError)


class TransactionManager:
    """
    Unit of work: one session, one transaction per `run` call.
    - Commits once when the callback returns, rolls back on any exception (cancellation included)
    - Errors raised by the callback propagate unchanged
    - Failing to begin or commit surfaces as Unavailable
    Nested `run` calls are rejected; use savepoints (`db.begin_nested()`) for isolation inside a transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], *, timeout: float | None = None):
        self._session_factory = session_factory
        self._timeout = timeout or None

    async def run(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        if IN_TRANSACTION_CTX.get():
            raise Internal("nested transactions are not supported")

        async with self._session_factory() as session:
            try:
                await session.begin()
                await session.connection()
            except _INFRA_ERRORS as e:
                logger.error("begin transaction failed: %s", e)
                raise Unavailable("begin transaction failed") from e

            committed = False
            token = IN_TRANSACTION_CTX.set(True)
            try:
                result = await self._call(fn, session)
                try:
                    await session.commit()
                except _INFRA_ERRORS as e:
                    logger.error("commit failed: %s", e)
                    raise Unavailable("commit failed") from e
                committed = True
                return result
            finally:
                IN_TRANSACTION_CTX.reset(token)
                if not committed:
                    await self._rollback(session)

    async def _call(self, fn: Callable[[AsyncSession], Awaitable[T]], session: AsyncSession) -> T:
        if self._timeout is None:
            return await fn(session)
        deadline = asyncio.timeout(self._timeout)
        try:
            async with deadline:
                return await fn(session)
        except TimeoutError as e:
            # Only expiry of our own deadline maps to Unavailable; a callback TimeoutError propagates as is
            if not deadline.expired():
                raise
            logger.warning("transaction deadline of %.1fs exceeded", self._timeout)
            raise Unavailable("transaction deadline exceeded", ctx={"timeout_s": self._timeout}) from e

    @staticmethod
    async def _rollback(session: AsyncSession) -> None:
        try:
            await session.rollback()
        except _INFRA_ERRORS:
            # The callback's error is already propagating; closing the session discards the connection state
            logger.exception("rollback failed")
