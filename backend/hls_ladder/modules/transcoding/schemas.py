"""Pydantic schemas for the transcoding API."""

from typing import Optional

from pydantic import BaseModel, Field, computed_field

from hls_ladder.modules.transcoding.models import EncoderBackend, ProgressState


class RenditionProgress(BaseModel):
    """Progress of one rendition."""
    rendition: str = Field(..., description="Rendition label, e.g. 1080p")
    percent: float = Field(..., ge=0, le=100)
    state: ProgressState

    @computed_field
    @property
    def flavor(self) -> str:
        """Rendition label under the key older player pages read."""
        return self.rendition

    class Config:
        from_attributes = True


class RenditionOutcome(BaseModel):
    """Result of one rendition job."""
    rendition: str
    backend: EncoderBackend
    success: bool
    return_code: Optional[int] = None
    error_message: Optional[str] = None
    elapsed_seconds: float = 0.0

    class Config:
        from_attributes = True


class TranscodeSummary(BaseModel):
    """Outcome of a whole trigger."""
    job_id: str
    input_path: str
    duration: float = Field(..., description="Source duration in seconds")
    include_audio: bool
    backend: EncoderBackend = Field(..., description="Backend detected for the job")
    manifest_path: str
    manifest_written: bool
    renditions: list[RenditionOutcome]

    @property
    def failed_renditions(self) -> list[str]:
        return [r.rendition for r in self.renditions if not r.success]


class TranscodeResponse(BaseModel):
    """Response of the trigger endpoint."""
    message: str
    job_id: str
    summary: TranscodeSummary
