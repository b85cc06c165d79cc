import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from time2meet.domain.exceptions import AppError, NotFound, Conflict, InvalidInput, Internal, Unavailable, \
    BatchAborted
from time2meet.core.ctx import REQUEST_ID_CTX

MEDIA_TYPE = "application/problem+json"
RETRY_AFTER_SECONDS = "1"

logger = logging.getLogger("time2meet.http")

_STATUS_BY_CLASS: dict[type[AppError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    Internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
    Unavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    AppError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_TITLES: dict[type[AppError], str] = {
    NotFound: "Not Found",
    Conflict: "Conflict",
    InvalidInput: "Bad Request",
    Internal: "Internal Server Error",
    Unavailable: "Service Unavailable",
    AppError: "Application Error",
}


def _lookup(exc: AppError, table: dict, default):
    for cls in type(exc).mro():
        if cls in table:
            return table[cls]
    return default


def _problem(
    request: Request,
    *,
    http_status: int,
    title: str,
    code: str,
    detail: str | None = None,
    extra: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "status": http_status,
        "title": title,
        "code": code,
        "detail": detail,
        "instance": str(request.url),
    }
    req_id = REQUEST_ID_CTX.get()
    if req_id:
        body["trace_id"] = req_id
    if extra:
        body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=http_status, content=body, media_type=MEDIA_TYPE, headers=headers or {})


def register_error_handler(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        status_code = _lookup(exc, _STATUS_BY_CLASS, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)

        headers = {"Retry-After": RETRY_AFTER_SECONDS} if isinstance(exc, Unavailable) else None
        extra = {"context": exc.ctx} if exc.ctx else {}
        if isinstance(exc, BatchAborted):
            extra["result"] = exc.result.model_dump()

        return _problem(
            request,
            http_status=status_code,
            title=_lookup(exc, _TITLES, "Application Error"),
            code=exc.code,
            detail=exc.message,
            extra=extra,
            headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "loc": ".".join(str(part) for part in err.get("loc", ())),
                "msg": err.get("msg"),
                "type": err.get("type"),
            }
            for err in exc.errors()
        ]
        return _problem(
            request,
            http_status=status.HTTP_400_BAD_REQUEST,
            title=_TITLES[InvalidInput],
            code=InvalidInput.code,
            detail="invalid request",
            extra={"context": {"errors": errors}}
        )
