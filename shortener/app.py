import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import cast

import asyncpg
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from redis.asyncio import Redis

from shortener.cache import RedisCacheStore
from shortener.controller import router, validation_error_handler
from shortener.repository import PostgresMappingStore, ensure_schema
from shortener.services import ResolutionCoordinator

DATABASE_URL = os.getenv("DATABASE_URL")
REDIS_URL = os.getenv("REDIS_URL")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")
DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", 5))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", 20))
CACHE_EXPIRY_SECONDS = int(os.getenv("CACHE_EXPIRY_SECONDS", 0))
CACHE_KEY_PREFIX = os.getenv("CACHE_KEY_PREFIX", "url:")
CACHE_BACKFILL = os.getenv("CACHE_BACKFILL", "false").lower() in ("1", "true", "yes")

# Logging
handlers: list[logging.Handler] = [logging.StreamHandler()]
if LOG_FILE:
    handlers.append(
        TimedRotatingFileHandler(
            filename=LOG_FILE,
            when="W0",
            interval=1,
            backupCount=4,
            encoding="utf-8",
        )
    )
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(levelname)s - %(asctime)s - %(message)s",
    handlers=handlers,
)
logger = logging.getLogger(__name__)

# Set up app
app = FastAPI(title="MiniMe - URL Shortener")
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.include_router(router)


# App lifecycle
@app.on_event("startup")
async def startup_event():
    app.state.db_pool = await asyncpg.create_pool(
        DATABASE_URL, min_size=DB_POOL_MIN_SIZE, max_size=DB_POOL_MAX_SIZE
    )
    await ensure_schema(app.state.db_pool)
    app.state.redis = Redis.from_url(
        cast(str, REDIS_URL), encoding="utf-8", decode_responses=True
    )
    app.state.coordinator = ResolutionCoordinator(
        cache=RedisCacheStore(
            app.state.redis,
            prefix=CACHE_KEY_PREFIX,
            expiry_seconds=CACHE_EXPIRY_SECONDS,
        ),
        durable=PostgresMappingStore(app.state.db_pool),
        backfill_cache=CACHE_BACKFILL,
    )
    logger.info("Application started, postgres database and redis initialized")


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.db_pool.close()
    await app.state.redis.aclose()
    logger.info("Application shut down, postgres database and redis connections closed")
