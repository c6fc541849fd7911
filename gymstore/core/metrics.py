from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

BOOKING_CONFLICTS = Counter(
    "booking_conflicts_total",
    "Booking attempts rejected because the slot was already confirmed",
)

ORDER_TRANSITIONS = Counter(
    "order_status_transitions_total",
    "Order status changes",
    ["from_status", "to_status"],
)

NOTIFICATION_FAILURES = Counter(
    "notification_failures_total",
    "Customer notifications that could not be delivered",
    ["kind"],
)


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
