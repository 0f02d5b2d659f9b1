"""Static file router.

Files are served from the work directory with a content type chosen by
extension. Must be included after every other router: it matches any path.
"""

import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from hls_ladder.core.config import Settings, settings

router = APIRouter(tags=["static"])

CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/MP2T",
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
INDEX_FILE = "index.html"


def get_settings() -> Settings:
    """Dependency returning application settings."""
    return settings


def content_type_for(path: str) -> str:
    """Content type for a file name, by extension."""
    _, ext = os.path.splitext(path)
    return CONTENT_TYPES.get(ext.lower(), DEFAULT_CONTENT_TYPE)


def resolve_static_path(root: str, url_path: str) -> Optional[str]:
    """Map a URL path to a file under root.

    Returns:
        Absolute file path, or None if it escapes root or is not a file
    """
    root = os.path.realpath(root)
    relative = url_path.lstrip("/") or INDEX_FILE
    candidate = os.path.realpath(os.path.join(root, relative))
    if os.path.commonpath([root, candidate]) != root:
        return None
    if os.path.isdir(candidate):
        candidate = os.path.join(candidate, INDEX_FILE)
    if not os.path.isfile(candidate):
        return None
    return candidate


@router.get("/{file_path:path}", include_in_schema=False)
async def serve_static(
    file_path: str,
    config: Settings = Depends(get_settings),
) -> FileResponse:
    """Serve a file from the work directory."""
    path = resolve_static_path(config.WORK_DIR, file_path)
    if path is None:
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(path, media_type=content_type_for(path))
