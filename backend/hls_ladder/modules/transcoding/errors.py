"""Transcoding error types.

Only these errors ever reach the HTTP caller; per-rendition failures are
recorded in the job result instead.
"""


class TranscodingError(Exception):
    """Base exception for transcoding errors."""
    pass


class InputNotFoundError(TranscodingError):
    """None of the configured input candidates exists."""

    def __init__(self, candidates: list[str]):
        self.candidates = list(candidates)
        super().__init__(
            "No input file found (looked for: " + ", ".join(self.candidates) + ")"
        )


class DurationProbeError(TranscodingError):
    """Total duration could not be read, or is zero."""
    pass


class TranscodeInProgressError(TranscodingError):
    """A transcode is already running."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Transcode {job_id} is already running")


class ProgressMarkerError(ValueError):
    """A progress line carries a time marker that does not match HH:MM:SS.fraction."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Unreadable time marker in: {line.strip()[:120]}")
