"""Application configuration settings.

All configuration values are loaded from environment variables (.env file).
Every setting has a default so the service starts with no environment.
"""

from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "HLS Ladder Transcoder"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Tracing
    TRACING_CONSOLE_EXPORT: bool = False
    OTLP_ENDPOINT: Optional[str] = None

    # Filesystem layout (relative paths resolve against WORK_DIR)
    WORK_DIR: str = "."
    INPUT_CANDIDATES: list[str] = ["input/input.mp4", "input/input.ts"]
    OUTPUT_DIR: str = "output"  # rendition directories and master playlist
    MASTER_PLAYLIST_NAME: str = "master.m3u8"

    # External tools
    FFMPEG_PATH: str = "ffmpeg"
    FFPROBE_PATH: str = "ffprobe"
    PROBE_TIMEOUT_SECONDS: int = 30

    # Encoding
    SEGMENT_DURATION: int = 6  # seconds
    AUDIO_CODEC: str = "aac"
    AUDIO_BITRATE: str = "128k"
    VAAPI_DEVICE: str = "/dev/dri/renderD128"
    FORCE_SOFTWARE_ENCODING: bool = False

    # Progress tracking
    PROGRESS_HISTORY_LIMIT: int = 8
    STDERR_TAIL_LINES: int = 20

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
