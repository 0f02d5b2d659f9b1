"""Input resolution and ffprobe media queries."""

import logging
import os
import subprocess
from typing import Iterable

from hls_ladder.core.logging import log_warning
from hls_ladder.modules.transcoding.errors import DurationProbeError, InputNotFoundError

logger = logging.getLogger(__name__)


def resolve_input(candidates: Iterable[str], base_dir: str = ".") -> str:
    """Return the first candidate input file that exists.

    Args:
        candidates: Ordered candidate paths, relative to base_dir
        base_dir: Directory relative paths resolve against

    Returns:
        Path of the first existing candidate

    Raises:
        InputNotFoundError: If none of the candidates exists
    """
    candidates = list(candidates)
    for candidate in candidates:
        path = os.path.join(base_dir, candidate)
        if os.path.isfile(path):
            logger.info(f"Input file detected: {path}")
            return path
    raise InputNotFoundError(candidates)


class MediaProber:
    """Duration and audio queries against ffprobe."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: int = 30):
        """Initialize prober.

        Args:
            ffprobe_path: Path to ffprobe binary
            timeout: Seconds to wait for each probe
        """
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            [self.ffprobe_path, "-v", "error", *args],
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )

    def get_duration(self, input_path: str) -> float:
        """Get the total duration of the input in seconds.

        Raises:
            DurationProbeError: If ffprobe fails or reports no positive duration
        """
        try:
            result = self._run([
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                input_path,
            ])
        except FileNotFoundError as e:
            raise DurationProbeError(f"ffprobe not found: {self.ffprobe_path}") from e
        except subprocess.TimeoutExpired as e:
            raise DurationProbeError(f"ffprobe timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise DurationProbeError(
                f"ffprobe failed (code {result.returncode}): {result.stderr.strip()}"
            )

        try:
            duration = float(result.stdout.strip())
        except ValueError as e:
            raise DurationProbeError(
                f"Unparsable duration from ffprobe: {result.stdout.strip()!r}"
            ) from e

        if duration <= 0:
            raise DurationProbeError(f"Input reports a duration of {duration}s")

        logger.info(f"ffprobe got duration: {duration}s for {input_path}")
        return duration

    def has_audio(self, input_path: str) -> bool:
        """Check whether the input has at least one audio stream.

        Any probe failure counts as "no audio" so the ladder still encodes
        video-only renditions.
        """
        try:
            result = self._run([
                "-select_streams", "a",
                "-show_entries", "stream=index",
                "-of", "csv=p=0",
                input_path,
            ])
        except (OSError, subprocess.TimeoutExpired) as e:
            log_warning(logger, "Audio probe failed, encoding without audio", error=str(e))
            return False

        if result.returncode != 0:
            log_warning(
                logger,
                "Audio probe failed, encoding without audio",
                return_code=result.returncode,
                stderr=result.stderr.strip(),
            )
            return False

        return result.stdout.strip() != ""
