"""FastAPI application entry point.

Run with: uvicorn src.main:app --port 8000
The settlement batch runs separately: python -m src.wg_settlement.job --due
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.wg_common.database import check_database, engine
from src.wg_common.errors import AppError
from src.wg_common.logging_config import configure_logging
from src.wg_common.redis_client import check_redis, close_redis
from src.wg_common.response import error_response
from src.wg_gateway.middleware.request_log import RequestLogMiddleware
from src.wg_settlement.api.router import router as settlement_router
from src.wg_wager.api.router import router as wager_router

APP_VERSION = "0.1.0"

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await check_database()
    await check_redis()
    logger.info("%s %s started", settings.APP_NAME, APP_VERSION)
    try:
        yield
    finally:
        await close_redis()
        await engine.dispose()
        logger.info("%s stopped", settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME, version=APP_VERSION, lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("Unhandled service error [%d] %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=error_response(exc.code, exc.message, request).model_dump(),
    )


app.include_router(wager_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": APP_VERSION}
