"""Async SQLAlchemy engine and the unit of work shared by API and worker.

With DATABASE_URL set, student, week, ledger and submission rows live
in PostgreSQL behind an asyncpg engine.  Without it every export is None
and both the API and the notification worker run on the in-memory
repositories.

One ``session_scope`` covers one request or one queued task: the
submission insert, the progress write-back and any unlock commit
together, and a failure anywhere rolls all of them back.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lms.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
        # The worker can sit idle on the queue long enough for the server
        # to drop pooled connections.
        pool_pre_ping=True,
    )
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Commit the request's or task's writes on success, roll back on error."""
    if async_session_factory is None:
        raise RuntimeError(
            "DATABASE_URL is not configured; cannot create database session"
        )
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan_db():
    """Open and dispose the engine around the API process lifetime."""
    if engine is None:
        logger.info("No DATABASE_URL configured; ledger and submissions are in memory")
        yield
        return

    logger.info("Database engine created: %s", engine.url)
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
