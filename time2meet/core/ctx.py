from contextvars import ContextVar

REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)

# Set while a TransactionManager callback runs in the current task
IN_TRANSACTION_CTX: ContextVar[bool] = ContextVar("in_transaction", default=False)


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()
