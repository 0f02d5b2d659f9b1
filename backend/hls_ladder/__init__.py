"""HLS Ladder Transcoder.

Converts one source video into a ladder of HLS renditions with a master
playlist, exposing a trigger endpoint and a live progress endpoint.

Modules:
    - core: Configuration, logging, tracing, metrics, middleware
    - modules.transcoding: Probing, encoder detection, rendition jobs, manifest
    - modules.system_monitoring: Metrics and health endpoints
    - modules.static: File serving for playlists and segments
"""

__version__ = "0.1.0"
