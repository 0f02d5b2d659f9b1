"""Property-based tests for rendition command construction.

**Feature: hls-ladder, Property 3: Rendition Command Accuracy**
"""

import os

from hypothesis import given, settings, strategies as st

from hls_ladder.modules.transcoding.capabilities import (
    SOFTWARE_ONLY_RENDITIONS,
    effective_backend,
)
from hls_ladder.modules.transcoding.ffmpeg import FFmpegConfig, build_command
from hls_ladder.modules.transcoding.models import (
    BACKEND_CODECS,
    EncoderBackend,
    JobState,
    RENDITION_CATALOG,
)

rendition_strategy = st.sampled_from(RENDITION_CATALOG)
backend_strategy = st.sampled_from(list(EncoderBackend))


def _state(backend: EncoderBackend, include_audio: bool = True) -> JobState:
    return JobState(
        input_path="input/input.mp4",
        duration=60.0,
        include_audio=include_audio,
        backend=backend,
    )


def _arg_after(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


class TestCatalog:
    """Tests for the fixed rendition catalog."""

    def test_six_renditions_highest_first(self) -> None:
        labels = [r.label for r in RENDITION_CATALOG]
        assert labels == ["2160p", "1080p", "720p", "480p", "360p", "180p"]
        heights = [r.height for r in RENDITION_CATALOG]
        assert heights == sorted(heights, reverse=True)

    def test_paths(self) -> None:
        r = RENDITION_CATALOG[1]
        assert r.resolution == "1920x1080"
        assert r.playlist_path == "output/1080p/prog.m3u8"
        assert r.segment_pattern == "output/1080p/file_%03d.ts"


class TestBuildCommand:
    """Property tests for ffmpeg arguments."""

    @given(rendition=rendition_strategy, backend=backend_strategy)
    @settings(max_examples=100)
    def test_no_audio_drops_audio_on_every_backend(self, rendition, backend) -> None:
        """**Feature: hls-ladder, Property 3: Rendition Command Accuracy**"""
        cmd = build_command(rendition, _state(backend, include_audio=False), FFmpegConfig())
        assert "-an" in cmd
        assert "-c:a" not in cmd
        assert "-b:a" not in cmd

    @given(rendition=rendition_strategy, backend=backend_strategy)
    @settings(max_examples=100)
    def test_audio_is_aac_128k(self, rendition, backend) -> None:
        cmd = build_command(rendition, _state(backend), FFmpegConfig())
        assert _arg_after(cmd, "-c:a") == "aac"
        assert _arg_after(cmd, "-b:a") == "128k"
        assert "-an" not in cmd

    @given(rendition=rendition_strategy, backend=backend_strategy)
    @settings(max_examples=100)
    def test_encoder_and_bitrate(self, rendition, backend) -> None:
        """**Feature: hls-ladder, Property 3: Rendition Command Accuracy**"""
        cmd = build_command(rendition, _state(backend), FFmpegConfig())
        used = effective_backend(rendition, backend)
        assert _arg_after(cmd, "-c:v") == BACKEND_CODECS[used]
        assert _arg_after(cmd, "-b:v") == rendition.bitrate

    @given(backend=backend_strategy)
    @settings(max_examples=20)
    def test_low_tiers_always_software(self, backend) -> None:
        for rendition in RENDITION_CATALOG:
            if rendition.label not in SOFTWARE_ONLY_RENDITIONS:
                continue
            cmd = build_command(rendition, _state(backend), FFmpegConfig())
            assert _arg_after(cmd, "-c:v") == "libx264"
            assert _arg_after(cmd, "-vf") == f"scale={rendition.scale}"
            assert "-vaapi_device" not in cmd

    @given(rendition=rendition_strategy)
    @settings(max_examples=20)
    def test_hls_output(self, rendition) -> None:
        config = FFmpegConfig(work_dir="/srv/ladder")
        cmd = build_command(rendition, _state(EncoderBackend.SOFTWARE), config)
        assert cmd[:4] == ["ffmpeg", "-y", "-i", "input/input.mp4"]
        assert _arg_after(cmd, "-f") == "hls"
        assert _arg_after(cmd, "-hls_time") == "6"
        assert _arg_after(cmd, "-hls_list_size") == "0"
        assert _arg_after(cmd, "-hls_segment_filename") == os.path.join(
            "/srv/ladder", rendition.segment_pattern
        )
        assert cmd[-1] == os.path.join("/srv/ladder", rendition.playlist_path)

    def test_vaapi_arguments(self) -> None:
        rendition = RENDITION_CATALOG[1]
        config = FFmpegConfig(vaapi_device="/dev/dri/renderD129")
        cmd = build_command(rendition, _state(EncoderBackend.VAAPI), config)
        assert _arg_after(cmd, "-vaapi_device") == "/dev/dri/renderD129"
        assert _arg_after(cmd, "-vf") == "format=nv12,hwupload,scale_vaapi=w=1920:h=1080"
        assert _arg_after(cmd, "-c:v") == "h264_vaapi"
        # device must come before the filter that uploads to it
        assert cmd.index("-vaapi_device") < cmd.index("-vf")

    def test_custom_segment_duration(self) -> None:
        config = FFmpegConfig(segment_duration=4)
        cmd = build_command(RENDITION_CATALOG[0], _state(EncoderBackend.NVENC), config)
        assert _arg_after(cmd, "-hls_time") == "4"
