"""Prometheus metrics for the transcoding service.

Exposes HTTP request metrics plus trigger and per-rendition job metrics.
"""

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
    multiprocess,
)
import os

# Create a custom registry for our metrics
REGISTRY = CollectorRegistry()

# Check if running in multiprocess mode (e.g., with gunicorn)
if "prometheus_multiproc_dir" in os.environ:
    multiprocess.MultiProcessCollector(REGISTRY)


# ============================================
# Application Info
# ============================================
APP_INFO = Info(
    "hls_ladder_app",
    "Application information",
    registry=REGISTRY,
)


# ============================================
# HTTP Request Metrics
# ============================================
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently in progress",
    ["method", "endpoint"],
    registry=REGISTRY,
)


# ============================================
# Transcode Metrics
# ============================================
TRANSCODE_TRIGGERS_TOTAL = Counter(
    "transcode_triggers_total",
    "Transcode triggers by outcome",
    ["outcome"],
    registry=REGISTRY,
)

TRANSCODE_ACTIVE = Gauge(
    "transcode_active",
    "Whether a transcode job is currently running (1=running, 0=idle)",
    registry=REGISTRY,
)

RENDITION_JOBS_TOTAL = Counter(
    "rendition_jobs_total",
    "Rendition jobs by rendition, encoder backend and outcome",
    ["rendition", "backend", "outcome"],
    registry=REGISTRY,
)

RENDITION_DURATION_SECONDS = Histogram(
    "rendition_duration_seconds",
    "Wall-clock duration of one rendition encode",
    ["rendition"],
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0, 3600.0],
    registry=REGISTRY,
)

RENDITION_PROGRESS_PERCENT = Gauge(
    "rendition_progress_percent",
    "Latest published progress of a rendition of the current job",
    ["rendition"],
    registry=REGISTRY,
)


def get_metrics() -> bytes:
    """Generate latest metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def set_app_info(version: str, environment: str) -> None:
    """Set application info metrics.

    Args:
        version: Application version
        environment: Deployment environment
    """
    APP_INFO.info({
        "version": version,
        "environment": environment,
    })
