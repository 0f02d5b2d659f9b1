"""Static file module.

Serves the produced playlists and segments, plus any player page placed
in the work directory.
"""

from hls_ladder.modules.static.router import router as static_router

__all__ = ["static_router"]
