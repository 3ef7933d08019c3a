"""Guardian notifications for homework submissions.

Submitting never waits on delivery.  The pipeline enqueues a task and
the submission starts out ``pending``; the worker delivers it and
records ``sent`` or ``failed`` with a timestamp.  Failures stay on the
submission for admins, who can resend.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

import httpx

from lms.core.config import SETTINGS
from lms.core.metrics import NOTIFICATIONS
from lms.models.submission import NotificationState
from lms.repos.bundle import Repositories
from lms.services.errors import NotificationError, SubmissionNotFoundError
from lms.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)

HOMEWORK_NOTIFICATION_QUEUE = "homework_notifications"
HOMEWORK_SUBMITTED = "homework_submitted"


@dataclass(frozen=True, slots=True)
class NotificationResult:
    success: bool
    provider_message_id: str | None = None
    error: str | None = None


@runtime_checkable
class NotificationDispatcher(Protocol):
    async def notify(self, kind: str, payload: dict) -> NotificationResult: ...


class InMemoryNotificationDispatcher:
    """Records every send; used in tests and local dev."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict]] = []

    async def notify(self, kind: str, payload: dict) -> NotificationResult:
        self.sent.append((kind, payload))
        return NotificationResult(
            success=True, provider_message_id=f"mem-{len(self.sent)}"
        )


class WebhookNotificationDispatcher:
    """POSTs {"kind", "payload"} to the messaging gateway."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def notify(self, kind: str, payload: dict) -> NotificationResult:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._url, json={"kind": kind, "payload": payload}
                )
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NotificationError(f"gateway error: {e}") from e

        if not body.get("success", False):
            return NotificationResult(success=False, error=body.get("error"))
        return NotificationResult(
            success=True, provider_message_id=body.get("message_id")
        )


async def request_submission_notification(
    submission_id: UUID, queue: TaskQueue
) -> None:
    """Enqueue delivery.  Never raises: a lost notification must not
    fail the submission that triggered it."""
    try:
        await queue.enqueue(
            HOMEWORK_NOTIFICATION_QUEUE, {"submission_id": str(submission_id)}
        )
    except Exception:
        logger.exception(
            "Could not enqueue notification for submission=%s",
            submission_id,
            extra={"submission_id": str(submission_id)},
        )


async def deliver_submission_notification(
    submission_id: UUID,
    repos: Repositories,
    dispatcher: NotificationDispatcher,
) -> NotificationState | None:
    """Send the guardian message for one submission and record the outcome."""
    submission = await repos.submissions.get_by_id(submission_id)
    if submission is None:
        logger.warning("Notification for unknown submission=%s", submission_id)
        return None

    if submission.notification.status == "sent":
        NOTIFICATIONS.labels(status="skipped").inc()
        return submission.notification

    student = await repos.students.get_by_id(submission.student_id)
    now = datetime.now(UTC)

    if student is None or not student.guardian_phone:
        state = NotificationState(
            status="failed", updated_at=now, error="Guardian phone number not found"
        )
    else:
        week = await repos.weeks.get_by_id(submission.week_id)
        payload = {
            "to": student.guardian_phone,
            "student_name": student.name,
            "week_number": week.week_number if week else None,
            "week_title": week.title if week else None,
            "homework_title": submission.title,
            "submitted_at": submission.submitted_at.isoformat(),
            "is_late": submission.is_late,
        }
        try:
            result = await dispatcher.notify(HOMEWORK_SUBMITTED, payload)
        except NotificationError as e:
            result = NotificationResult(success=False, error=str(e))

        state = NotificationState(
            status="sent" if result.success else "failed",
            updated_at=now,
            provider_message_id=result.provider_message_id,
            error=result.error,
        )

    await repos.submissions.set_notification(submission_id, state)
    NOTIFICATIONS.labels(status=state.status).inc()
    if state.status == "failed":
        logger.error(
            "Notification failed for submission=%s: %s",
            submission_id,
            state.error,
            extra={"submission_id": str(submission_id)},
        )
    else:
        logger.info("Notification sent for submission=%s", submission_id)
    return state


async def resend_notification(
    submission_id: UUID,
    repos: Repositories,
    queue: TaskQueue,
    *,
    defer: Callable[..., None] | None = None,
) -> NotificationState:
    """Admin action: reset to pending and enqueue delivery again.

    ``defer`` works as in HomeworkSubmissionPipeline: the enqueue runs
    after the pending status is committed.
    """
    submission = await repos.submissions.get_by_id(submission_id)
    if submission is None:
        raise SubmissionNotFoundError(f"submission {submission_id} not found")

    state = NotificationState(status="pending", updated_at=datetime.now(UTC))
    await repos.submissions.set_notification(submission_id, state)
    if defer is not None:
        defer(request_submission_notification, submission_id, queue)
    else:
        await request_submission_notification(submission_id, queue)
    return state


if SETTINGS.notification_webhook_url:
    notification_dispatcher: NotificationDispatcher = WebhookNotificationDispatcher(
        SETTINGS.notification_webhook_url
    )
else:
    notification_dispatcher = InMemoryNotificationDispatcher()
