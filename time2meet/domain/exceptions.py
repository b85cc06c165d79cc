from typing import TYPE_CHECKING
from time2meet.core.utils.serialization import normalize_ctx

if TYPE_CHECKING:
    from time2meet.domain.batch.schemas import BatchResultDTO


class AppError(Exception):
    code = "internal"

    def __init__(self, message: str = "", *, ctx: dict | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.ctx = normalize_ctx(ctx or {})


class InvalidInput(AppError):
    code = "validation"


class NotFound(AppError):
    code = "not_found"


class Conflict(AppError):
    code = "conflict"


class Internal(AppError):
    code = "internal"


class Unavailable(AppError):
    """Transaction could not be started or committed; safe to retry."""
    code = "unavailable"


class BatchAborted(Conflict):
    """
    First failing row of a batch that runs with continue_on_error=False.
    `result` is what had been processed at the time of the abort; the enclosing
    transaction is rolled back, so none of its successful rows were persisted.
    """

    def __init__(self, message: str, *, result: "BatchResultDTO", ctx: dict | None = None) -> None:
        super().__init__(message, ctx=ctx)
        self.result = result
