"""Service layer for ladder transcoding.

One trigger probes the input, picks an encoder backend, runs every
rendition of the ladder in parallel and writes the master playlist once
all of them have ended.
"""

import contextvars
import logging
import os
import subprocess
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from hls_ladder.core.config import Settings, settings as default_settings
from hls_ladder.core.logging import log_error, log_info, set_job_id
from hls_ladder.core.metrics import TRANSCODE_ACTIVE, TRANSCODE_TRIGGERS_TOTAL
from hls_ladder.core.tracing import add_span_attributes, create_span, record_exception
from hls_ladder.modules.transcoding.abr import write_master_playlist
from hls_ladder.modules.transcoding.capabilities import select_backend
from hls_ladder.modules.transcoding.errors import TranscodeInProgressError, TranscodingError
from hls_ladder.modules.transcoding.ffmpeg import FFmpegConfig, RenditionJob
from hls_ladder.modules.transcoding.models import (
    EncoderBackend,
    JobState,
    ProgressEntry,
    RenditionResult,
    RenditionSpec,
    build_catalog,
)
from hls_ladder.modules.transcoding.probe import MediaProber, resolve_input
from hls_ladder.modules.transcoding.progress import ProgressTracker
from hls_ladder.modules.transcoding.schemas import (
    RenditionOutcome,
    TranscodeSummary,
)

logger = logging.getLogger(__name__)


class TranscodingService:
    """Runs the rendition ladder for the configured input.

    Only one transcode runs at a time; a second trigger while one is in
    flight raises :class:`TranscodeInProgressError`.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        tracker: Optional[ProgressTracker] = None,
        prober: Optional[MediaProber] = None,
        backend_selector: Optional[Callable[[], EncoderBackend]] = None,
        catalog: Optional[tuple[RenditionSpec, ...]] = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        """Initialize service.

        Args:
            config: Application settings (module settings if omitted)
            tracker: Progress tracker shared with the poll endpoint
            prober: ffprobe wrapper
            backend_selector: Returns the encoder backend for a job
            catalog: Renditions to produce (built under OUTPUT_DIR if omitted)
            popen: Process factory used to launch ffmpeg
        """
        self.config = config or default_settings
        self.catalog = catalog or build_catalog(self.config.OUTPUT_DIR)
        self.tracker = tracker or ProgressTracker(
            labels=[r.label for r in self.catalog],
            history_limit=self.config.PROGRESS_HISTORY_LIMIT,
        )
        self.prober = prober or MediaProber(
            ffprobe_path=self.config.FFPROBE_PATH,
            timeout=self.config.PROBE_TIMEOUT_SECONDS,
        )
        self.backend_selector = backend_selector or (
            lambda: select_backend(
                self.config.FFMPEG_PATH,
                force_software=self.config.FORCE_SOFTWARE_ENCODING,
            )
        )
        self.ffmpeg_config = FFmpegConfig.from_settings(self.config)
        self._popen = popen
        self._trigger_lock = threading.Lock()
        self._active_job_id: Optional[str] = None

    @property
    def manifest_path(self) -> str:
        return os.path.join(
            self.config.WORK_DIR,
            self.config.OUTPUT_DIR,
            self.config.MASTER_PLAYLIST_NAME,
        )

    @property
    def is_running(self) -> bool:
        return self._trigger_lock.locked()

    def get_progress(self, job_id: Optional[str] = None) -> Optional[list[ProgressEntry]]:
        """Progress of a job; the latest job when job_id is omitted."""
        return self.tracker.snapshot(job_id)

    def run_transcode(self) -> TranscodeSummary:
        """Run the whole ladder synchronously.

        Raises:
            TranscodeInProgressError: Another transcode is running
            InputNotFoundError: No input file found
            DurationProbeError: Input duration unreadable or zero
        """
        if not self._trigger_lock.acquire(blocking=False):
            TRANSCODE_TRIGGERS_TOTAL.labels(outcome="rejected").inc()
            raise TranscodeInProgressError(self._active_job_id or "unknown")

        TRANSCODE_ACTIVE.set(1)
        try:
            with create_span("transcode.trigger"):
                try:
                    state = self._prepare_job()
                except TranscodingError as e:
                    record_exception(e)
                    TRANSCODE_TRIGGERS_TOTAL.labels(outcome="error").inc()
                    log_error(logger, f"Transcode aborted: {e}")
                    raise
                summary = self._run_job(state)
            TRANSCODE_TRIGGERS_TOTAL.labels(outcome="completed").inc()
            return summary
        finally:
            set_job_id(None)
            self._active_job_id = None
            TRANSCODE_ACTIVE.set(0)
            self._trigger_lock.release()

    def _prepare_job(self) -> JobState:
        input_path = resolve_input(self.config.INPUT_CANDIDATES, self.config.WORK_DIR)
        duration = self.prober.get_duration(input_path)

        logger.info("Checking for an audio track")
        include_audio = self.prober.has_audio(input_path)
        if include_audio:
            logger.info("Audio track found")
        else:
            logger.info("No audio track, transcoding video only")

        backend = self.backend_selector()
        logger.info(f"Selected encoder backend: {backend.value}")

        return JobState(
            input_path=input_path,
            duration=duration,
            include_audio=include_audio,
            backend=backend,
        )

    def _run_job(self, state: JobState) -> TranscodeSummary:
        self._active_job_id = state.job_id
        set_job_id(state.job_id)
        add_span_attributes({
            "transcode.job_id": state.job_id,
            "transcode.duration": state.duration,
            "transcode.include_audio": state.include_audio,
            "transcode.backend": state.backend.value,
        })
        self.tracker.start_job(state.job_id)
        log_info(
            logger,
            "Transcode started",
            input_path=state.input_path,
            duration=state.duration,
            renditions=[r.label for r in self.catalog],
        )

        results = self._run_renditions(state)

        manifest_path = self.manifest_path
        manifest_written = write_master_playlist(manifest_path, self.catalog)

        failed = [r.rendition for r in results if not r.success]
        log_info(
            logger,
            "Transcode finished",
            failed_renditions=failed,
            manifest_written=manifest_written,
        )

        return TranscodeSummary(
            job_id=state.job_id,
            input_path=state.input_path,
            duration=state.duration,
            include_audio=state.include_audio,
            backend=state.backend,
            manifest_path=manifest_path,
            manifest_written=manifest_written,
            renditions=[RenditionOutcome.model_validate(r) for r in results],
        )

    def _run_renditions(self, state: JobState) -> list[RenditionResult]:
        """Run every rendition concurrently and wait for all of them."""
        jobs = [
            RenditionJob(rendition, state, self.tracker, self.ffmpeg_config, popen=self._popen)
            for rendition in self.catalog
        ]

        with ThreadPoolExecutor(
            max_workers=len(jobs),
            thread_name_prefix=f"transcode-{state.job_id[:8]}",
        ) as executor:
            futures: list[Future] = [
                executor.submit(contextvars.copy_context().run, self._run_in_span, job)
                for job in jobs
            ]
            return [self._collect(job, future) for job, future in zip(jobs, futures)]

    def _run_in_span(self, job: RenditionJob) -> RenditionResult:
        with create_span(
            f"transcode.rendition.{job.rendition.label}",
            attributes={
                "rendition": job.rendition.label,
                "backend": job.backend.value,
                "bitrate": job.rendition.bitrate,
            },
        ):
            result = job.run()
            add_span_attributes({"success": result.success})
            return result

    def _collect(self, job: RenditionJob, future: Future) -> RenditionResult:
        """Wait for one rendition; an unexpected crash fails only that rendition."""
        try:
            return future.result()
        except Exception as e:
            label = job.rendition.label
            self.tracker.finish(job.state.job_id, label, success=False)
            log_error(logger, f"Rendition {label} crashed", exception=e, rendition=label)
            return RenditionResult(
                rendition=label,
                backend=job.backend,
                success=False,
                error_message=str(e),
            )


_service: Optional[TranscodingService] = None
_service_lock = threading.Lock()


def get_transcoding_service() -> TranscodingService:
    """Process-wide service instance."""
    global _service
    with _service_lock:
        if _service is None:
            _service = TranscodingService()
        return _service
