"""API Router for ladder transcoding.

Trigger a transcode and poll its progress.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from hls_ladder.modules.transcoding.errors import (
    TranscodeInProgressError,
    TranscodingError,
)
from hls_ladder.modules.transcoding.schemas import (
    RenditionProgress,
    TranscodeResponse,
)
from hls_ladder.modules.transcoding.service import (
    TranscodingService,
    get_transcoding_service,
)

router = APIRouter(tags=["transcoding"])


@router.api_route("/transcode", methods=["GET", "POST"], response_model=TranscodeResponse)
async def trigger_transcode(
    service: TranscodingService = Depends(get_transcoding_service),
) -> TranscodeResponse:
    """Transcode the input into every rendition and write the master playlist.

    The request stays open until every rendition has finished.
    """
    try:
        summary = await run_in_threadpool(service.run_transcode)
    except TranscodeInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TranscodingError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    failed = summary.failed_renditions
    if failed:
        message = f"Transcode finished; failed renditions: {', '.join(failed)}"
    else:
        message = "Transcode finished successfully"
    return TranscodeResponse(message=message, job_id=summary.job_id, summary=summary)


@router.get("/progress", response_model=list[RenditionProgress])
async def get_progress(
    service: TranscodingService = Depends(get_transcoding_service),
) -> list[RenditionProgress]:
    """Progress of every rendition of the latest transcode."""
    entries = service.get_progress()
    return [RenditionProgress.model_validate(entry) for entry in entries]


@router.get("/progress/{job_id}", response_model=list[RenditionProgress])
async def get_job_progress(
    job_id: str,
    service: TranscodingService = Depends(get_transcoding_service),
) -> list[RenditionProgress]:
    """Progress of every rendition of a recent transcode."""
    entries = service.get_progress(job_id)
    if entries is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return [RenditionProgress.model_validate(entry) for entry in entries]
