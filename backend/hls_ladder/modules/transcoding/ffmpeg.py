"""FFmpeg rendition jobs.

Builds the ffmpeg argument list for one rendition, runs it, and follows its
stderr on a paired thread to publish live progress.
"""

import logging
import os
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from hls_ladder.core.logging import log_error, log_info
from hls_ladder.core.metrics import RENDITION_DURATION_SECONDS, RENDITION_JOBS_TOTAL
from hls_ladder.modules.transcoding.capabilities import effective_backend
from hls_ladder.modules.transcoding.errors import ProgressMarkerError
from hls_ladder.modules.transcoding.models import (
    BACKEND_CODECS,
    EncoderBackend,
    JobState,
    RenditionResult,
    RenditionSpec,
)
from hls_ladder.modules.transcoding.progress import (
    ProgressTracker,
    compute_percent,
    extract_elapsed,
)

logger = logging.getLogger(__name__)


@dataclass
class FFmpegConfig:
    """Settings shared by every rendition command."""
    ffmpeg_path: str = "ffmpeg"
    work_dir: str = "."
    segment_duration: int = 6  # seconds
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    vaapi_device: str = "/dev/dri/renderD128"
    stderr_tail_lines: int = 20

    @classmethod
    def from_settings(cls, settings) -> "FFmpegConfig":
        return cls(
            ffmpeg_path=settings.FFMPEG_PATH,
            work_dir=settings.WORK_DIR,
            segment_duration=settings.SEGMENT_DURATION,
            audio_codec=settings.AUDIO_CODEC,
            audio_bitrate=settings.AUDIO_BITRATE,
            vaapi_device=settings.VAAPI_DEVICE,
            stderr_tail_lines=settings.STDERR_TAIL_LINES,
        )

    def resolve(self, path: str) -> str:
        return os.path.join(self.work_dir, path)


def get_video_args(rendition: RenditionSpec, backend: EncoderBackend, config: FFmpegConfig) -> list[str]:
    """Scale filter and encoder arguments for a backend."""
    codec = BACKEND_CODECS[backend]

    if backend == EncoderBackend.VAAPI:
        return [
            "-vaapi_device", config.vaapi_device,
            "-vf", f"format=nv12,hwupload,scale_vaapi=w={rendition.width}:h={rendition.height}",
            "-c:v", codec,
            "-b:v", rendition.bitrate,
        ]

    return [
        "-vf", f"scale={rendition.scale}",
        "-c:v", codec,
        "-b:v", rendition.bitrate,
    ]


def get_audio_args(include_audio: bool, config: FFmpegConfig) -> list[str]:
    if include_audio:
        return ["-c:a", config.audio_codec, "-b:a", config.audio_bitrate]
    return ["-an"]


def get_hls_args(rendition: RenditionSpec, config: FFmpegConfig) -> list[str]:
    """HLS muxer arguments: fixed segments, unbounded playlist."""
    return [
        "-f", "hls",
        "-hls_time", str(config.segment_duration),
        "-hls_list_size", "0",
        "-hls_segment_filename", config.resolve(rendition.segment_pattern),
        config.resolve(rendition.playlist_path),
    ]


def build_command(
    rendition: RenditionSpec,
    state: JobState,
    config: FFmpegConfig,
) -> list[str]:
    """Build the full ffmpeg command for one rendition.

    Args:
        rendition: Rendition to encode
        state: Current job state (input, audio flag, detected backend)
        config: Shared ffmpeg settings

    Returns:
        FFmpeg command as list of arguments
    """
    backend = effective_backend(rendition, state.backend)

    cmd = [config.ffmpeg_path, "-y", "-i", state.input_path]
    cmd.extend(get_video_args(rendition, backend, config))
    cmd.extend(get_audio_args(state.include_audio, config))
    cmd.extend(get_hls_args(rendition, config))
    return cmd


class RenditionJob:
    """One rendition encode of one job."""

    def __init__(
        self,
        rendition: RenditionSpec,
        state: JobState,
        tracker: ProgressTracker,
        config: FFmpegConfig,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        self.rendition = rendition
        self.state = state
        self.tracker = tracker
        self.config = config
        self.backend = effective_backend(rendition, state.backend)
        self._popen = popen
        self._stderr_tail: deque[str] = deque(maxlen=max(1, config.stderr_tail_lines))

    @property
    def command(self) -> list[str]:
        return build_command(self.rendition, self.state, self.config)

    def run(self) -> RenditionResult:
        """Run the encode to completion.

        Never raises for ffmpeg failures: the outcome is returned and the
        rendition's progress is forced to 100 either way.
        """
        label = self.rendition.label
        started = time.perf_counter()
        return_code: Optional[int] = None
        error_message: Optional[str] = None

        try:
            os.makedirs(self.config.resolve(self.rendition.output_dir), exist_ok=True)
            log_info(
                logger,
                f"Transcoding {label} with encoder [{self.backend.value}]",
                rendition=label,
                backend=self.backend.value,
            )
            # text mode reads with universal newlines, so ffmpeg's
            # carriage-return status updates arrive as separate lines
            process = self._popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            error_message = f"Failed to start ffmpeg: {e}"
        else:
            reader = threading.Thread(
                target=self._follow_stderr,
                args=(process.stderr,),
                name=f"ffmpeg-stderr-{label}",
                daemon=True,
            )
            reader.start()
            return_code = process.wait()
            reader.join()
            if return_code != 0:
                error_message = f"ffmpeg exited with code {return_code}"

        success = error_message is None
        elapsed = time.perf_counter() - started
        self.tracker.finish(self.state.job_id, label, success)

        RENDITION_DURATION_SECONDS.labels(rendition=label).observe(elapsed)
        RENDITION_JOBS_TOTAL.labels(
            rendition=label,
            backend=self.backend.value,
            outcome="completed" if success else "failed",
        ).inc()

        if success:
            log_info(logger, f"{label} completed", rendition=label, elapsed_seconds=round(elapsed, 2))
        else:
            log_error(
                logger,
                f"Error in {label}: {error_message}",
                rendition=label,
                return_code=return_code,
                stderr_tail=list(self._stderr_tail),
            )

        return RenditionResult(
            rendition=label,
            backend=self.backend,
            success=success,
            return_code=return_code,
            error_message=error_message,
            elapsed_seconds=elapsed,
        )

    def _follow_stderr(self, stream) -> None:
        """Publish progress for every time marker until ffmpeg closes stderr."""
        label = self.rendition.label
        job_id = self.state.job_id
        try:
            for line in stream:
                line = line.rstrip("\n")
                if not line:
                    continue
                self._stderr_tail.append(line)
                try:
                    elapsed = extract_elapsed(line)
                except ProgressMarkerError:
                    self.tracker.mark_unknown(job_id, label)
                    continue
                if elapsed is not None:
                    self.tracker.publish(job_id, label, compute_percent(elapsed, self.state.duration))
        finally:
            stream.close()
