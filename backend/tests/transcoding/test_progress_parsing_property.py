"""Property-based tests for ffmpeg progress parsing.

**Feature: hls-ladder, Property 1: Progress Timestamp Parsing**
"""

import pytest
from hypothesis import given, settings, strategies as st

from hls_ladder.modules.transcoding.errors import ProgressMarkerError
from hls_ladder.modules.transcoding.progress import (
    compute_percent,
    extract_elapsed,
    parse_timestamp,
)


class TestParseTimestamp:
    """Tests for HH:MM:SS.fraction conversion."""

    def test_known_value(self) -> None:
        assert parse_timestamp("01:02:03.45") == pytest.approx(3723.45)

    def test_without_fraction(self) -> None:
        assert parse_timestamp("00:00:10") == pytest.approx(10.0)

    @given(
        hours=st.integers(min_value=0, max_value=99),
        minutes=st.integers(min_value=0, max_value=59),
        seconds=st.integers(min_value=0, max_value=59),
        centis=st.integers(min_value=0, max_value=99),
    )
    @settings(max_examples=100)
    def test_components_sum_to_seconds(
        self, hours: int, minutes: int, seconds: int, centis: int
    ) -> None:
        """**Feature: hls-ladder, Property 1: Progress Timestamp Parsing**"""
        value = f"{hours:02d}:{minutes:02d}:{seconds:02d}.{centis:02d}"
        expected = hours * 3600 + minutes * 60 + seconds + centis / 100
        assert parse_timestamp(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["N/A", "", "12:34", "aa:bb:cc", "00:75:00.00"])
    def test_rejects_malformed(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_timestamp(value)


class TestExtractElapsed:
    """Tests for reading the time marker from stderr lines."""

    def test_status_line(self) -> None:
        line = (
            "frame=  240 fps= 48 q=28.0 size=    1024kB "
            "time=00:00:10.01 bitrate= 838.0kbits/s speed=1.9x"
        )
        assert extract_elapsed(line) == pytest.approx(10.01)

    def test_line_without_marker(self) -> None:
        assert extract_elapsed("Stream #0:0: Video: h264, yuv420p, 1920x1080") is None

    def test_unreadable_marker(self) -> None:
        line = "frame=    0 fps=0.0 q=0.0 size=       0kB time=N/A bitrate=N/A"
        with pytest.raises(ProgressMarkerError) as exc_info:
            extract_elapsed(line)
        assert exc_info.value.line == line

    def test_unreadable_marker_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            extract_elapsed("time=garbage")


class TestComputePercent:
    """Tests for progress percentage."""

    def test_half_way(self) -> None:
        assert compute_percent(30.0, 60.0) == pytest.approx(50.0)

    def test_zero_total(self) -> None:
        assert compute_percent(12.0, 0.0) == 0.0

    @given(
        elapsed=st.floats(min_value=0, max_value=1e6, allow_nan=False),
        total=st.floats(min_value=0.001, max_value=1e6, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_percent_is_clamped(self, elapsed: float, total: float) -> None:
        """**Feature: hls-ladder, Property 1: Progress Timestamp Parsing**"""
        percent = compute_percent(elapsed, total)
        assert 0.0 <= percent <= 100.0

    @given(total=st.floats(min_value=1.0, max_value=1e5, allow_nan=False))
    @settings(max_examples=100)
    def test_overshoot_caps_at_100(self, total: float) -> None:
        assert compute_percent(total * 1.5, total) == 100.0
