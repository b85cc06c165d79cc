import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from time2meet.api.exceptions import register_error_handler
from time2meet.api.v1.routes import tickets, batch
from time2meet.core.config import LOG_LEVEL
from time2meet.core.database import engine
from time2meet.core.middleware.http_ctx import HttpContextMiddleware


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(lifespan=lifespan)
app.add_middleware(HttpContextMiddleware, request_id_header="X-Request-ID")
register_error_handler(app)
app.include_router(tickets.router)
app.include_router(batch.router)
