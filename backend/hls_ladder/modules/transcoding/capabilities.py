"""Hardware encoder detection and backend selection policy.

Capabilities are probed once per process: the host and its ffmpeg build do
not change while the service runs.
"""

import logging
import platform
import shutil
import subprocess
from dataclasses import dataclass
from functools import lru_cache

from hls_ladder.modules.transcoding.models import (
    BACKEND_CODECS,
    EncoderBackend,
    RenditionSpec,
)

logger = logging.getLogger(__name__)

HARDWARE_ENCODERS = frozenset(
    codec for backend, codec in BACKEND_CODECS.items() if backend != EncoderBackend.SOFTWARE
)

# Checked in order on non-Darwin hosts
HARDWARE_PRIORITY = (EncoderBackend.NVENC, EncoderBackend.QSV, EncoderBackend.VAAPI)

# Renditions that always encode in software, whatever the host offers
SOFTWARE_ONLY_RENDITIONS = frozenset({"360p", "180p"})


@dataclass(frozen=True)
class EncoderCapabilities:
    """What the host's ffmpeg can use for H.264 encoding."""
    system: str
    nvidia_driver: bool
    encoders: frozenset[str]

    def supports(self, backend: EncoderBackend) -> bool:
        if backend == EncoderBackend.SOFTWARE:
            return True
        if backend == EncoderBackend.NVENC and not self.nvidia_driver:
            return False
        return BACKEND_CODECS[backend] in self.encoders

    def select_backend(self) -> EncoderBackend:
        """Pick the preferred backend for a whole job."""
        if self.system == "Darwin":
            if self.supports(EncoderBackend.VIDEOTOOLBOX):
                return EncoderBackend.VIDEOTOOLBOX
            return EncoderBackend.SOFTWARE

        for backend in HARDWARE_PRIORITY:
            if self.supports(backend):
                return backend
        return EncoderBackend.SOFTWARE


def parse_encoder_listing(output: str) -> frozenset[str]:
    """Extract known hardware H.264 encoders from `ffmpeg -encoders` output.

    Listing rows look like `` V....D h264_nvenc   NVIDIA NVENC H.264 encoder``;
    the encoder name is the second column.
    """
    found = set()
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[1] in HARDWARE_ENCODERS:
            found.add(parts[1])
    return frozenset(found)


def _list_encoders(ffmpeg_path: str) -> str:
    try:
        result = subprocess.run(
            [ffmpeg_path, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Could not list ffmpeg encoders: {e}")
        return ""
    return result.stdout + result.stderr


def probe_capabilities(ffmpeg_path: str = "ffmpeg") -> EncoderCapabilities:
    """Inspect the host and ffmpeg build."""
    system = platform.system()
    nvidia_driver = system != "Darwin" and shutil.which("nvidia-smi") is not None
    encoders = parse_encoder_listing(_list_encoders(ffmpeg_path))
    if system == "Darwin":
        encoders = encoders & {BACKEND_CODECS[EncoderBackend.VIDEOTOOLBOX]}

    capabilities = EncoderCapabilities(
        system=system,
        nvidia_driver=nvidia_driver,
        encoders=encoders,
    )
    logger.info(
        "Encoder capabilities detected",
        extra={
            "system": system,
            "nvidia_driver": nvidia_driver,
            "encoders": sorted(encoders),
        },
    )
    return capabilities


@lru_cache(maxsize=4)
def detect_capabilities(ffmpeg_path: str = "ffmpeg") -> EncoderCapabilities:
    """Cached :func:`probe_capabilities`."""
    return probe_capabilities(ffmpeg_path)


def select_backend(ffmpeg_path: str = "ffmpeg", force_software: bool = False) -> EncoderBackend:
    if force_software:
        return EncoderBackend.SOFTWARE
    return detect_capabilities(ffmpeg_path).select_backend()


def effective_backend(rendition: RenditionSpec, detected: EncoderBackend) -> EncoderBackend:
    """Backend a rendition actually uses, after the low-tier override."""
    if rendition.label in SOFTWARE_ONLY_RENDITIONS:
        return EncoderBackend.SOFTWARE
    return detected
