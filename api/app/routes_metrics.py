# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

# Counters
http_requests_total = Counter(
    "http_requests_total", "Total HTTP requests", ["path", "method", "status"]
)

print_jobs_dispatched_total = Counter(
    "print_jobs_dispatched_total",
    "Print jobs handed to the bridge socket",
    ["result"],
)
print_jobs_dispatched_total.labels(result="sent").inc(0)
print_jobs_dispatched_total.labels(result="unavailable").inc(0)
print_jobs_dispatched_total.labels(result="error").inc(0)

print_status_total = Counter(
    "print_status_total", "Print status reports received from the bridge", ["status"]
)
print_status_total.labels(status="SUCCESS").inc(0)
print_status_total.labels(status="FAILED").inc(0)

printer_auth_failures_total = Counter(
    "printer_auth_failures_total", "Rejected printer bridge upgrade attempts"
)
printer_auth_failures_total.inc(0)

# Gauges
printer_bridge_connected = Gauge(
    "printer_bridge_connected", "1 when a printer bridge socket is registered"
)

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint(request: Request) -> Response:
    """Expose Prometheus metrics."""
    http_requests_total.labels(path="/metrics", method="GET", status="200").inc(0)
    registry = getattr(request.app.state, "bridge_registry", None)
    if registry is not None:
        printer_bridge_connected.set(1 if registry.is_connected() else 0)
    data = generate_latest()
    return Response(data, media_type=CONTENT_TYPE_LATEST)
