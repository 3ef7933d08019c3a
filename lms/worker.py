"""Background worker process.

RUN:  python -m lms.worker

Same image as the API, different command:
  api:    uvicorn lms.main:app --host 0.0.0.0 --port 8000
  worker: python -m lms.worker

Polls every registered queue round-robin, one task at a time.  A
failing task is logged and dropped; notification failures are already
recorded on the submission and can be resent by an admin.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable, Coroutine
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from lms.core.config import SETTINGS
from lms.core.logging import setup_logging
from lms.db.engine import async_session_factory, session_scope
from lms.repos.bundle import IN_MEMORY, Repositories, pg_repositories
from lms.services.notifications import (
    HOMEWORK_NOTIFICATION_QUEUE,
    deliver_submission_notification,
    notification_dispatcher,
)
from lms.services.task_queue import task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("worker")


@asynccontextmanager
async def unit_of_work() -> AsyncGenerator[Repositories, None]:
    if async_session_factory is None:
        yield IN_MEMORY
        return
    async with session_scope() as session:
        yield pg_repositories(session)


HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@register_handler(HOMEWORK_NOTIFICATION_QUEUE)
async def handle_homework_notification(payload: dict) -> None:
    submission_id = UUID(payload["submission_id"])
    async with unit_of_work() as repos:
        await deliver_submission_notification(
            submission_id, repos, notification_dispatcher
        )


async def process_one(queue_name: str, timeout: int = 1) -> bool:
    """Dequeue and handle a single task.  False when the queue was empty."""
    task = await task_queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name)
    except Exception:
        logger.exception("Task %s on [%s] failed", task.id, queue_name)
    return True


async def run_worker() -> None:
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        handled = False
        for queue_name in queues:
            handled = await process_one(queue_name) or handled
        if not handled:
            # the in-memory queue returns immediately instead of blocking
            await asyncio.sleep(0.1)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
