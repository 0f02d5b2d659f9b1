"""Core module for configuration, logging, tracing and metrics."""

from hls_ladder.core.config import settings

__all__ = ["settings"]
