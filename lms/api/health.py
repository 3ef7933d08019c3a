"""Liveness and readiness endpoints.

/health answers "is the process alive" and always returns 200, with a
per-dependency breakdown; /ready returns 503 while a configured
dependency is unreachable so the load balancer routes around us.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from lms.db.engine import engine
from lms.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_dependencies() -> dict[str, str]:
    checks: dict[str, str] = {}

    if engine is not None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception:
            logger.exception("Database health check failed")
            checks["database"] = "degraded"
    else:
        checks["database"] = "not_configured"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            logger.exception("Redis health check failed")
            checks["redis"] = "degraded"
    else:
        checks["redis"] = "not_configured"

    return checks


@router.get("/health")
async def health() -> dict:
    checks = await _check_dependencies()
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready(response: Response) -> dict:
    checks = await _check_dependencies()
    # The database is required; Redis only carries notifications.
    if checks["database"] == "degraded":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "checks": checks}
    return {"status": "ready", "checks": checks}
