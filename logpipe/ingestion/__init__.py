"""
Log ingestion module.

This module turns raw log lines from files and streams into RawLog records.
"""

from logpipe.ingestion.parser import LogLineParser, FORMATS

__all__ = ['LogLineParser', 'FORMATS']
