"""Prometheus metrics: request duration histogram and the /metrics endpoint."""
import logging
import time

from fastapi import APIRouter, Request
from starlette.responses import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

logger = logging.getLogger("student_backend.metrics")

METRICS_PATH = "/metrics"

DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10)

router = APIRouter()


class MetricsCollector:
    """Owns a private registry so several apps (e.g. in tests) never collide."""

    def __init__(self):
        self.registry = CollectorRegistry()
        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)
        GCCollector(registry=self.registry)
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            labelnames=("method", "route", "status_code"),
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )

    def observe(self, method: str, route: str, status_code: int, seconds: float) -> None:
        self.request_duration.labels(
            method=method, route=route, status_code=str(status_code)
        ).observe(seconds)

    def render(self):
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


def route_label(request: Request) -> str:
    """Matched route template, or the raw path when nothing matched."""
    route = request.scope.get("route")
    path_format = getattr(route, "path_format", None) or getattr(route, "path", None)
    return path_format or request.url.path


async def measure_request_duration(request: Request, call_next):
    """HTTP middleware recording every non-metrics request in the histogram."""
    if request.url.path == METRICS_PATH:
        return await call_next(request)

    collector: MetricsCollector = request.app.state.metrics
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        collector.observe(
            request.method, route_label(request), 500, time.perf_counter() - start
        )
        raise
    collector.observe(
        request.method,
        route_label(request),
        response.status_code,
        time.perf_counter() - start,
    )
    return response


@router.get(METRICS_PATH, include_in_schema=False)
def metrics(request: Request):
    try:
        body, content_type = request.app.state.metrics.render()
    except Exception:
        logger.exception("generating metrics failed")
        return Response(
            "Error generating metrics", status_code=500, media_type="text/plain"
        )
    return Response(body, media_type=content_type)
