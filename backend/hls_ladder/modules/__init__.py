"""Application modules.

- transcoding: rendition ladder, progress tracking, master playlist
- system_monitoring: Prometheus metrics and health check
- static: playlist, segment and player file serving
"""
