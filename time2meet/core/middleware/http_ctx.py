import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from time2meet.core.ctx import REQUEST_ID_CTX


logger = logging.getLogger("time2meet.http")


def _http_route(request: Request) -> str:
    return f"{request.method} {request.url.path}"


class HttpContextMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, request_id_header: str = "X-Request-ID"):
        super().__init__(app)
        self.request_id_header = request_id_header

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(self.request_id_header) or str(uuid.uuid4())
        token = REQUEST_ID_CTX.set(rid)
        t0 = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers.setdefault(self.request_id_header, rid)
            logger.info(
                "%s -> %d in %dms request_id=%s",
                _http_route(request), response.status_code, int((time.perf_counter() - t0) * 1000), rid
            )
            return response
        finally:
            REQUEST_ID_CTX.reset(token)
