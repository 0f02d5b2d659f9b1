"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from hls_ladder.core.config import settings
from hls_ladder.core.logging import setup_logging
from hls_ladder.core.tracing import setup_tracing, shutdown_tracing
from hls_ladder.core.metrics import set_app_info
from hls_ladder.core.middleware import (
    MetricsMiddleware,
    CorrelationIdMiddleware,
    TracingMiddleware,
    RequestLoggingMiddleware,
)
from hls_ladder.modules.transcoding import transcoding_router
from hls_ladder.modules.system_monitoring import system_monitoring_router
from hls_ladder.modules.static import static_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure tracing on startup; flush pending spans on shutdown."""
    setup_tracing(
        service_name=settings.PROJECT_NAME,
        service_version=settings.VERSION,
        environment="development" if settings.DEBUG else "production",
        otlp_endpoint=settings.OTLP_ENDPOINT,
        enable_console_export=settings.TRACING_CONSOLE_EXPORT,
    )
    yield
    shutdown_tracing()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
    description="""
## Adaptive Bitrate HLS Ladder

Transcodes one source video into six HLS renditions (2160p to 180p) and a
master playlist.

* **Trigger** - `POST /transcode` runs the whole ladder and returns when done
* **Progress** - `GET /progress` reports every rendition of the latest job
* **Playback** - playlists and segments are served from the work directory
    """,
    openapi_tags=[
        {
            "name": "transcoding",
            "description": "Trigger the ladder and poll its progress",
        },
        {
            "name": "system-monitoring",
            "description": "Prometheus metrics",
        },
        {
            "name": "health",
            "description": "Health check endpoints",
        },
    ],
)

setup_logging(
    level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
    json_format=settings.LOG_JSON,
    include_stack_trace=True,
)

set_app_info(
    version=settings.VERSION,
    environment="development" if settings.DEBUG else "production",
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(TracingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(MetricsMiddleware)

app.include_router(transcoding_router)
app.include_router(system_monitoring_router)
# Catch-all file route, must stay last
app.include_router(static_router)
