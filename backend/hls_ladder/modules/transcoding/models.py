"""Domain models for the rendition ladder.

The rendition catalog is fixed for the lifetime of the process; job state
and progress entries are in-memory only.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EncoderBackend(str, Enum):
    """Video encoding path used for a rendition."""
    SOFTWARE = "software"
    VIDEOTOOLBOX = "videotoolbox"  # macOS
    NVENC = "nvenc"  # NVIDIA
    QSV = "qsv"  # Intel Quick Sync
    VAAPI = "vaapi"  # AMD / generic Linux VA-API


# ffmpeg encoder name per backend
BACKEND_CODECS = {
    EncoderBackend.SOFTWARE: "libx264",
    EncoderBackend.VIDEOTOOLBOX: "h264_videotoolbox",
    EncoderBackend.NVENC: "h264_nvenc",
    EncoderBackend.QSV: "h264_qsv",
    EncoderBackend.VAAPI: "h264_vaapi",
}


class ProgressState(str, Enum):
    """Lifecycle of one rendition inside a job."""
    PENDING = "pending"
    ENCODING = "encoding"
    UNKNOWN = "unknown"  # ffmpeg printed a time marker we could not read
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RenditionSpec:
    """One quality level of the ladder."""
    label: str
    scale: str  # "W:H"
    bitrate: str  # e.g. "6000k"
    output_dir: str  # relative to the work directory

    @property
    def width(self) -> int:
        return int(self.scale.split(":")[0])

    @property
    def height(self) -> int:
        return int(self.scale.split(":")[1])

    @property
    def resolution(self) -> str:
        """Resolution in playlist notation, e.g. "1920x1080"."""
        return f"{self.width}x{self.height}"

    @property
    def playlist_path(self) -> str:
        return f"{self.output_dir}/prog.m3u8"

    @property
    def segment_pattern(self) -> str:
        return f"{self.output_dir}/file_%03d.ts"


# label, scale, bitrate; highest to lowest resolution
LADDER = (
    ("2160p", "3840:2160", "14000k"),
    ("1080p", "1920:1080", "6000k"),
    ("720p", "1280:720", "3000k"),
    ("480p", "854:480", "1000k"),
    ("360p", "640:360", "600k"),
    ("180p", "320:180", "300k"),
)


def build_catalog(output_dir: str = "output") -> tuple[RenditionSpec, ...]:
    """Rendition catalog with every rendition under output_dir/<label>."""
    base = output_dir.strip("/") or "."
    return tuple(
        RenditionSpec(label, scale, bitrate, f"{base}/{label}")
        for label, scale, bitrate in LADDER
    )


RENDITION_CATALOG: tuple[RenditionSpec, ...] = build_catalog()

RENDITION_LABELS: tuple[str, ...] = tuple(r.label for r in RENDITION_CATALOG)


@dataclass
class JobState:
    """State of one trigger, discarded once the manifest is written."""
    input_path: str
    duration: float  # seconds
    include_audio: bool
    backend: EncoderBackend
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: float = field(default_factory=time.time)


@dataclass
class ProgressEntry:
    """Completion of one rendition of one job."""
    rendition: str
    percent: float = 0.0
    state: ProgressState = ProgressState.PENDING

    def copy(self) -> "ProgressEntry":
        return ProgressEntry(self.rendition, self.percent, self.state)


@dataclass
class RenditionResult:
    """Outcome of one rendition job."""
    rendition: str
    backend: EncoderBackend
    success: bool
    return_code: Optional[int] = None
    error_message: Optional[str] = None
    elapsed_seconds: float = 0.0
