"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.fs_common.database import engine
from src.fs_common.errors import AppError
from src.fs_common.redis_client import close_redis, get_redis
from src.fs_common.response import error_response
from src.fs_expense.api.router import router as expense_router
from src.fs_gateway.middleware.request_log import RequestLogMiddleware
from src.fs_ledger.api.router import router as balance_router
from src.fs_realtime.application.broadcaster import SessionBroadcaster
from src.fs_realtime.infrastructure.redis_relay import RedisBroadcastRelay
from src.fs_receipt.api.router import router as receipt_router
from src.fs_settlement.api.router import router as settlement_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, build the broadcaster (+ Redis relay). Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

    broadcaster = SessionBroadcaster(queue_size=settings.SUBSCRIBER_QUEUE_SIZE)
    relay: RedisBroadcastRelay | None = None
    if settings.BROADCAST_BACKEND == "redis":
        relay = RedisBroadcastRelay(await get_redis(), broadcaster)
        await relay.start()
        broadcaster.attach_relay(relay)
    app.state.broadcaster = broadcaster
    logger.info("Broadcaster ready: backend=%s", settings.BROADCAST_BACKEND)
    yield
    # Shutdown
    broadcaster.close()
    if relay is not None:
        await relay.stop()
        await close_redis()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(balance_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(expense_router, prefix="/api/v1")
app.include_router(receipt_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
