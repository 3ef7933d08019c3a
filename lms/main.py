from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lms.api.admin import router as admin_router
from lms.api.health import router as health_router
from lms.api.homework import router as homework_router
from lms.api.metrics_endpoint import router as metrics_router
from lms.api.weeks import router as weeks_router
from lms.core.config import SETTINGS
from lms.core.logging import setup_logging
from lms.db.engine import lifespan_db
from lms.db.redis import lifespan_redis
from lms.middleware.metrics import MetricsMiddleware
from lms.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="lms",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Last-added runs first: RequestContext -> Metrics -> route handler.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(weeks_router)
app.include_router(homework_router)
app.include_router(admin_router)

logger.info(
    "lms started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
