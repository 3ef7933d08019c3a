"""Redis connection management.

Mirrors engine.py: with REDIS_URL set we create a connection pool,
otherwise redis_pool is None and the task queue falls back to memory.
Redis only carries the notification task queue; nothing durable lives
there.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from lms.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Verify Redis on startup and release the pool on shutdown."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured; task queue runs in memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        # Submissions still succeed without Redis; only guardian
        # notifications are lost until it comes back.
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
