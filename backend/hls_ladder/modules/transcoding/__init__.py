"""Transcoding module for the adaptive bitrate ladder.

Runs one ffmpeg encode per rendition in parallel, tracks their progress
from ffmpeg's diagnostics and writes the HLS master playlist.
"""

from hls_ladder.modules.transcoding.router import router as transcoding_router

__all__ = ["transcoding_router"]
