"""Adaptive bitrate master playlist generation.

The master playlist lists every rendition of the ladder in catalog order
so a player can switch quality with network conditions.
"""

import logging
import os
from typing import Iterable

from hls_ladder.core.logging import log_error
from hls_ladder.modules.transcoding.models import RENDITION_CATALOG, RenditionSpec

logger = logging.getLogger(__name__)

_BITRATE_MULTIPLIERS = {"k": 1_000, "m": 1_000_000}


def bandwidth_from_bitrate(bitrate: str) -> str:
    """Convert an ffmpeg bitrate ("6000k") to a BANDWIDTH value ("6000000").

    Args:
        bitrate: Bitrate with an optional k/M suffix

    Returns:
        Bits per second as a decimal string
    """
    value = bitrate.strip()
    multiplier = _BITRATE_MULTIPLIERS.get(value[-1:].lower())
    if multiplier is None:
        return str(int(value))
    return str(int(value[:-1]) * multiplier)


def stream_inf(rendition: RenditionSpec) -> list[str]:
    """The two playlist lines advertising one rendition."""
    return [
        f"#EXT-X-STREAM-INF:BANDWIDTH={bandwidth_from_bitrate(rendition.bitrate)},"
        f"RESOLUTION={rendition.resolution}",
        f"/{rendition.playlist_path}",
    ]


def build_master_playlist(renditions: Iterable[RenditionSpec] = RENDITION_CATALOG) -> str:
    """Build the master m3u8 for a ladder."""
    lines = ["#EXTM3U"]
    for rendition in renditions:
        lines.extend(stream_inf(rendition))
    return "\n".join(lines) + "\n"


def write_master_playlist(
    path: str,
    renditions: Iterable[RenditionSpec] = RENDITION_CATALOG,
) -> bool:
    """Write the master playlist.

    Failures are logged, not raised: a missing manifest does not fail the
    transcode that produced the renditions.

    Returns:
        True if the file was written
    """
    logger.info(f"Generating {path}")
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            f.write(build_master_playlist(renditions))
    except OSError as e:
        log_error(logger, f"Failed to write master playlist {path}", exception=e)
        return False
    logger.info(f"{path} generated")
    return True
