"""Progress extraction from ffmpeg diagnostics and per-job progress tracking.

ffmpeg reports progress on stderr with lines such as::

    frame=  240 fps= 48 q=28.0 size=    1024kB time=00:00:10.01 bitrate= 838.0kbits/s

The only token used is the ``time=`` marker, read with a fixed grammar
``HH:MM:SS(.fraction)``.
"""

import re
import threading
from collections import OrderedDict
from typing import Iterable, Optional

from hls_ladder.core.metrics import RENDITION_PROGRESS_PERCENT
from hls_ladder.modules.transcoding.errors import ProgressMarkerError
from hls_ladder.modules.transcoding.models import (
    ProgressEntry,
    ProgressState,
    RENDITION_LABELS,
)

TIME_MARKER = "time="
_TIMESTAMP_RE = re.compile(r"^(\d+):([0-5]?\d):(\d+(?:\.\d+)?)$")
_MARKER_RE = re.compile(r"time=\s*(\S*)")


def parse_timestamp(value: str) -> float:
    """Convert ``HH:MM:SS.fraction`` to seconds.

    Raises:
        ValueError: If the value does not match the grammar
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        raise ValueError(f"Not a HH:MM:SS timestamp: {value!r}")
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def extract_elapsed(line: str) -> Optional[float]:
    """Read the elapsed encode time from one stderr line.

    Returns:
        Elapsed seconds, or None when the line has no time marker

    Raises:
        ProgressMarkerError: If the marker is present but unreadable
            (ffmpeg prints ``time=N/A`` before the first frame)
    """
    if TIME_MARKER not in line:
        return None
    match = _MARKER_RE.search(line)
    try:
        return parse_timestamp(match.group(1))
    except ValueError as e:
        raise ProgressMarkerError(line) from e


def compute_percent(elapsed: float, total: float) -> float:
    """Percent of total covered by elapsed, clamped to [0, 100]."""
    if total <= 0:
        return 0.0
    percent = elapsed / total * 100
    return max(0.0, min(100.0, percent))


class ProgressTracker:
    """Progress of recent jobs, keyed by job ID.

    All reads and writes go through one lock; readers always get copies.
    Polling without a job ID returns the most recently started job.
    """

    def __init__(self, labels: Iterable[str] = RENDITION_LABELS, history_limit: int = 8):
        self.labels = tuple(labels)
        self.history_limit = max(1, history_limit)
        self._jobs: "OrderedDict[str, dict[str, ProgressEntry]]" = OrderedDict()
        self._latest_job_id: Optional[str] = None
        self._lock = threading.Lock()

    def start_job(self, job_id: str) -> None:
        """Register a job with every rendition at 0 and make it the latest."""
        with self._lock:
            self._jobs[job_id] = {label: ProgressEntry(label) for label in self.labels}
            self._jobs.move_to_end(job_id)
            self._latest_job_id = job_id
            while len(self._jobs) > self.history_limit:
                self._jobs.popitem(last=False)
        for label in self.labels:
            RENDITION_PROGRESS_PERCENT.labels(rendition=label).set(0)

    def publish(self, job_id: str, rendition: str, percent: float) -> float:
        """Record progress for a rendition; never moves backwards.

        Returns:
            The percent now stored for the rendition
        """
        percent = max(0.0, min(100.0, percent))
        with self._lock:
            entry = self._entry(job_id, rendition)
            if entry is None:
                return percent
            if entry.state in (ProgressState.COMPLETED, ProgressState.FAILED):
                return entry.percent
            entry.percent = max(entry.percent, percent)
            entry.state = ProgressState.ENCODING
            stored = entry.percent
            is_latest = job_id == self._latest_job_id
        if is_latest:
            RENDITION_PROGRESS_PERCENT.labels(rendition=rendition).set(stored)
        return stored

    def mark_unknown(self, job_id: str, rendition: str) -> None:
        """Flag that the last progress line could not be read."""
        with self._lock:
            entry = self._entry(job_id, rendition)
            if entry is not None and entry.state in (ProgressState.PENDING, ProgressState.ENCODING):
                entry.state = ProgressState.UNKNOWN

    def finish(self, job_id: str, rendition: str, success: bool) -> None:
        """Force a rendition to 100 once its job has ended."""
        with self._lock:
            entry = self._entry(job_id, rendition)
            if entry is None:
                return
            entry.percent = 100.0
            entry.state = ProgressState.COMPLETED if success else ProgressState.FAILED
            is_latest = job_id == self._latest_job_id
        if is_latest:
            RENDITION_PROGRESS_PERCENT.labels(rendition=rendition).set(100)

    def snapshot(self, job_id: Optional[str] = None) -> Optional[list[ProgressEntry]]:
        """Copy of the entries of a job, in catalog order.

        Args:
            job_id: Job to read; the latest job when omitted

        Returns:
            Entries for every label. Before any job has started every entry
            is pending at 0. None if an explicit job_id is unknown.
        """
        with self._lock:
            if job_id is None:
                job_id = self._latest_job_id
                if job_id is None:
                    return [ProgressEntry(label) for label in self.labels]
            entries = self._jobs.get(job_id)
            if entries is None:
                return None
            return [entries[label].copy() for label in self.labels]

    @property
    def latest_job_id(self) -> Optional[str]:
        with self._lock:
            return self._latest_job_id

    def _entry(self, job_id: str, rendition: str) -> Optional[ProgressEntry]:
        entries = self._jobs.get(job_id)
        if entries is None:
            return None
        return entries.get(rendition)
