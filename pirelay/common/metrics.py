"""Prometheus metric definitions for the relay."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
pi_api_requests_total = Counter(
    "pi_api_requests_total",
    "Calls made to the Pi payments API by outcome",
    ["service", "action", "outcome"],
)
pi_api_latency_seconds = Histogram(
    "pi_api_latency_seconds",
    "Pi payments API round trip seconds",
    ["service", "action"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
