"""Prometheus metric inventory.

All metrics are defined here; the middleware and services import the
ones they own and increment them at the point of action.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Progress / submission metrics
# ---------------------------------------------------------------------------

HOMEWORK_SUBMISSIONS = Counter(
    "homework_submissions_total",
    "Homework submission attempts by outcome",
    # accepted|late|duplicate|deadline_passed|invalid|storage_failed
    ["outcome"],
)

WEEKS_UNLOCKED = Counter(
    "weeks_unlocked_total",
    "Week unlock transitions by source",
    ["unlocked_by"],  # auto|manual|admin
)

PROGRESS_EVALUATIONS = Counter(
    "progress_evaluations_total",
    "Completion evaluations run against the progress ledger",
)

NOTIFICATIONS = Counter(
    "notifications_total",
    "Guardian notifications by delivery status",
    ["status"],  # sent|failed|skipped
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
