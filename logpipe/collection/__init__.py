"""
Log collection module.

This module polls log sources and buffers the records they produce.
"""

from logpipe.collection.buffer import LogBuffer, MAX_BUFFER_SIZE
from logpipe.collection.collector import LogCollector
from logpipe.collection.sources import (
    SourceAdapter,
    SimulatedSourceAdapter,
    FileSourceAdapter,
    create_adapter,
)

__all__ = [
    'LogBuffer',
    'MAX_BUFFER_SIZE',
    'LogCollector',
    'SourceAdapter',
    'SimulatedSourceAdapter',
    'FileSourceAdapter',
    'create_adapter',
]
