"""Prometheus instrumentation for every HTTP request.

The endpoint label is the matched route template
(``/v1/weeks/{week_id}/progress``), not the raw path, so week, student
and submission ids do not explode label cardinality.  The template is
read from the route the router stored in the scope while dispatching;
requests that matched nothing are grouped as ``unmatched``.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from lms.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION


def _route_template(scope: dict, root_path: str) -> str:
    route = scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if not template:
        return "unmatched"
    # Routers mounted under a prefix extend root_path instead of the route path.
    prefix = scope.get("root_path", "")[len(root_path) :]
    if prefix and not template.startswith(prefix):
        template = prefix + template
    return template


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Don't count Prometheus scrapes.
        if request.url.path == "/metrics":
            return await call_next(request)

        root_path = request.scope.get("root_path", "")
        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code: str | None = None

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        except Exception:
            status_code = "500"
            raise
        finally:
            duration = time.monotonic() - start
            ACTIVE_REQUESTS.dec()
            endpoint = _route_template(request.scope, root_path)
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code if status_code is not None else "500",
            ).inc()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(duration)

        return response
