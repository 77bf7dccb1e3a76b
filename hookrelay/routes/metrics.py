"""
Prometheus metrics endpoint.

Exposes HTTP and webhook delivery metrics for monitoring.
"""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Webhook Metrics
# ============================================

webhooks_enqueued = Counter(
    'webhooks_enqueued_total',
    'Total webhook records enqueued through the API'
)

webhook_deliveries = Counter(
    'webhook_deliveries_total',
    'Total webhook delivery attempts by resulting status',
    ['status']
)

webhook_retries_scheduled = Counter(
    'webhook_retries_scheduled_total',
    'Total retry successors created'
)

webhook_batch_size = Histogram(
    'webhook_batch_size',
    'Records claimed per delivery iteration',
    buckets=[0, 1, 5, 10, 25, 50, 100, 250]
)

webhook_iteration_failures = Counter(
    'webhook_iteration_failures_total',
    'Delivery iterations aborted by an infrastructure error'
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.

    Call this after each request.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()

    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_webhooks_enqueued(count: int = 1):
    """Record webhook records entering the queue."""
    webhooks_enqueued.inc(count)


def track_webhook_delivery(status: str):
    """Record the terminal status of one delivery attempt."""
    webhook_deliveries.labels(status=status).inc()


def track_webhook_retry():
    """Record a retry successor being scheduled."""
    webhook_retries_scheduled.inc()


def track_batch_claimed(size: int):
    """Record how many records an iteration claimed."""
    webhook_batch_size.observe(size)


def track_iteration_failure():
    """Record a failed delivery iteration."""
    webhook_iteration_failures.inc()


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns all registered metrics in Prometheus format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
