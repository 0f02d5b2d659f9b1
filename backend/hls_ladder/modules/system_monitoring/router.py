"""System monitoring API router.

Exposes Prometheus metrics and a health check reporting whether the
external encoding tools are reachable.
"""

import shutil

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from hls_ladder.core.config import settings
from hls_ladder.core.metrics import get_metrics, get_content_type
from hls_ladder.modules.transcoding.service import (
    TranscodingService,
    get_transcoding_service,
)

router = APIRouter(tags=["system-monitoring"])


@router.get(
    "/metrics",
    response_class=PlainTextResponse,
    summary="Prometheus metrics endpoint",
)
async def get_prometheus_metrics() -> Response:
    """Metrics in Prometheus text format: HTTP requests, triggers and renditions."""
    return Response(
        content=get_metrics(),
        media_type=get_content_type(),
    )


@router.get("/health", tags=["health"])
async def health_check(
    service: TranscodingService = Depends(get_transcoding_service),
) -> dict:
    """Health check endpoint.

    The service is "degraded" when ffmpeg or ffprobe cannot be found, since
    every trigger would then fail.
    """
    tools = {
        "ffmpeg": shutil.which(settings.FFMPEG_PATH) is not None,
        "ffprobe": shutil.which(settings.FFPROBE_PATH) is not None,
    }
    return {
        "status": "healthy" if all(tools.values()) else "degraded",
        "tools": tools,
        "transcode_running": service.is_running,
        "latest_job_id": service.tracker.latest_job_id,
    }
