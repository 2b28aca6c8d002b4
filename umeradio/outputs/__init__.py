"""
Output sinks.

This package contains the sinks that consume the scheduler's PCM stream
(Discord voice channel, headless null output).
"""

from .base_sink import BaseSink
from .null_sink import NullSink
from .factory import create_output_sink

__all__ = [
    "BaseSink",
    "NullSink",
    "create_output_sink",
]
