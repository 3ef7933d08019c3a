"""Request id propagation and the per-request access log.

Each request gets an id (the client's X-Request-ID, or a fresh UUID)
held in a ContextVar, so every log line emitted while serving a
submission or a progress read can be correlated.  Context variables,
not thread-locals: requests share the event loop thread.

The access line also carries the student, week, material and
submission ids taken from the matched route's path parameters.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_ID_PARAMS = ("student_id", "week_id", "material_id", "submission_id")


class _RequestContextFilter(logging.Filter):
    """Attach the current request id to every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


# Installed on the root logger so every logger inherits it.
root_logger = logging.getLogger()
if not any(isinstance(f, _RequestContextFilter) for f in root_logger.filters):
    root_logger.addFilter(_RequestContextFilter())


def _path_ids(request: Request) -> dict[str, str]:
    # path_params is filled in by the router once call_next has dispatched.
    params = request.scope.get("path_params") or {}
    return {k: str(params[k]) for k in _ID_PARAMS if k in params}


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                **_path_ids(request),
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
