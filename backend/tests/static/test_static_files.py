"""Tests for static file serving."""

import pytest
from fastapi.testclient import TestClient

from hls_ladder.core.config import Settings
from hls_ladder.main import app
from hls_ladder.modules.static.router import (
    content_type_for,
    get_settings,
    resolve_static_path,
)


@pytest.fixture
def work_dir(tmp_path):
    (tmp_path / "index.html").write_text("<html>player</html>")
    (tmp_path / "player.js").write_text("console.log('ok')")
    segment_dir = tmp_path / "output" / "720p"
    segment_dir.mkdir(parents=True)
    (segment_dir / "prog.m3u8").write_text("#EXTM3U\n")
    (segment_dir / "file_000.ts").write_bytes(b"\x47" * 188)
    (tmp_path / "output" / "thumb.png").write_bytes(b"\x89PNG")
    return tmp_path


@pytest.fixture
def client(work_dir):
    app.dependency_overrides[get_settings] = lambda: Settings(WORK_DIR=str(work_dir))
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestContentTypes:
    """Tests for extension based content types."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("output/master.m3u8", "application/vnd.apple.mpegurl"),
            ("output/720p/file_000.ts", "video/MP2T"),
            ("index.html", "text/html"),
            ("app.js", "application/javascript"),
            ("style.css", "text/css"),
            ("thumb.png", "application/octet-stream"),
            ("README", "application/octet-stream"),
        ],
    )
    def test_mapping(self, path: str, expected: str) -> None:
        assert content_type_for(path) == expected


class TestResolveStaticPath:
    """Tests for URL to file mapping."""

    def test_root_is_index(self, work_dir) -> None:
        assert resolve_static_path(str(work_dir), "") == str((work_dir / "index.html").resolve())

    def test_nested_file(self, work_dir) -> None:
        path = resolve_static_path(str(work_dir), "/output/720p/prog.m3u8")
        assert path == str((work_dir / "output" / "720p" / "prog.m3u8").resolve())

    @pytest.mark.parametrize("url_path", ["../etc/passwd", "output/../../secret", "/../../etc/hosts"])
    def test_traversal_rejected(self, work_dir, url_path: str) -> None:
        (work_dir.parent / "secret").write_text("nope")
        assert resolve_static_path(str(work_dir), url_path) is None

    def test_missing(self, work_dir) -> None:
        assert resolve_static_path(str(work_dir), "output/1080p/prog.m3u8") is None

    def test_directory_without_index(self, work_dir) -> None:
        assert resolve_static_path(str(work_dir), "output") is None


class TestServeStatic:
    """Tests for the catch-all file route."""

    def test_index(self, client) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "player" in response.text

    def test_playlist(self, client) -> None:
        response = client.get("/output/720p/prog.m3u8")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/vnd.apple.mpegurl")

    def test_segment(self, client) -> None:
        response = client.get("/output/720p/file_000.ts")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("video/MP2T")
        assert response.content == b"\x47" * 188

    def test_unknown_extension(self, client) -> None:
        response = client.get("/output/thumb.png")
        assert response.headers["content-type"].startswith("application/octet-stream")

    def test_missing_file(self, client) -> None:
        assert client.get("/output/1080p/prog.m3u8").status_code == 404

    def test_api_routes_take_precedence(self, client) -> None:
        response = client.get("/progress")
        assert response.status_code == 200
        assert isinstance(response.json(), list)
