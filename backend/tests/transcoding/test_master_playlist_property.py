"""Property-based tests for master playlist generation.

**Feature: hls-ladder, Property 4: Master Playlist Completeness**
"""

import os

from hypothesis import given, settings, strategies as st

from hls_ladder.modules.transcoding.abr import (
    bandwidth_from_bitrate,
    build_master_playlist,
    write_master_playlist,
)
from hls_ladder.modules.transcoding.models import RENDITION_CATALOG

EXPECTED_MASTER = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=14000000,RESOLUTION=3840x2160
/output/2160p/prog.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=6000000,RESOLUTION=1920x1080
/output/1080p/prog.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=3000000,RESOLUTION=1280x720
/output/720p/prog.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=1000000,RESOLUTION=854x480
/output/480p/prog.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=600000,RESOLUTION=640x360
/output/360p/prog.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=300000,RESOLUTION=320x180
/output/180p/prog.m3u8
"""


class TestBandwidth:
    """Tests for bitrate to BANDWIDTH conversion."""

    def test_catalog_values(self) -> None:
        assert bandwidth_from_bitrate("6000k") == "6000000"
        assert bandwidth_from_bitrate("300k") == "300000"

    def test_megabits(self) -> None:
        assert bandwidth_from_bitrate("2M") == "2000000"

    def test_plain_number(self) -> None:
        assert bandwidth_from_bitrate("128000") == "128000"

    @given(kbps=st.integers(min_value=1, max_value=100_000))
    @settings(max_examples=100)
    def test_kilobits_scale_by_1000(self, kbps: int) -> None:
        """**Feature: hls-ladder, Property 4: Master Playlist Completeness**"""
        assert int(bandwidth_from_bitrate(f"{kbps}k")) == kbps * 1000


class TestMasterPlaylist:
    """Tests for master playlist content."""

    def test_full_ladder(self) -> None:
        assert build_master_playlist(RENDITION_CATALOG) == EXPECTED_MASTER

    @given(subset=st.lists(st.sampled_from(RENDITION_CATALOG), min_size=1, max_size=6, unique=True))
    @settings(max_examples=100)
    def test_one_entry_per_rendition_in_order(self, subset) -> None:
        """**Feature: hls-ladder, Property 4: Master Playlist Completeness**"""
        lines = build_master_playlist(subset).splitlines()
        assert lines[0] == "#EXTM3U"
        assert len(lines) == 1 + 2 * len(subset)
        uris = lines[2::2]
        assert uris == [f"/{r.playlist_path}" for r in subset]

    def test_write(self, tmp_path) -> None:
        path = tmp_path / "output" / "master.m3u8"
        assert write_master_playlist(str(path)) is True
        assert path.read_text() == EXPECTED_MASTER

    def test_rewrite_is_identical(self, tmp_path) -> None:
        path = tmp_path / "master.m3u8"
        write_master_playlist(str(path))
        first = path.read_text()
        write_master_playlist(str(path))
        assert path.read_text() == first

    def test_write_failure_returns_false(self, tmp_path) -> None:
        blocker = tmp_path / "output"
        blocker.write_text("not a directory")
        path = os.path.join(str(blocker), "master.m3u8")
        assert write_master_playlist(path) is False
