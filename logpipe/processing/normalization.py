"""
Format normalization.

Brings level, timestamp, IP address and source name into canonical form.
Every function here is idempotent.
"""

import re
from typing import Any, Union

from logpipe.ingestion.parser import LogLineParser
from logpipe.models import LogLevel, RawLog

_DOTTED_DECIMAL = re.compile(r'^\d+(?:\.\d+){3}$')
_SOURCE_INVALID_CHARS = re.compile(r'[^a-z0-9_-]')


def normalize_level(level: Any) -> Union[LogLevel, str]:
    """
    Uppercase a level.

    Returns:
        The LogLevel when recognized, otherwise the uppercased string
        (validation rejects it later)
    """
    return LogLevel.parse(level) or str(level if level is not None else '').strip().upper()


def normalize_timestamp(timestamp: Any) -> Any:
    """
    Coerce ISO strings and epoch numbers to datetime.

    Naive values are taken as local time. Values carrying an offset (such as
    a trailing ``Z``) are converted to the local zone, so time-of-day
    enrichment always sees local wall-clock hours. Values that cannot be
    parsed are returned unchanged.
    """
    parsed = LogLineParser.parse_timestamp(timestamp)
    if parsed is None:
        return timestamp
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed


def normalize_ip(ip: str) -> str:
    """
    Strip leading zeros from each octet of a dotted-decimal address.

    ``192.168.001.001`` becomes ``192.168.1.1``. Anything that is not four
    dot-separated numbers is returned unchanged.
    """
    if ip is None:
        return "unknown"
    ip = str(ip).strip()
    if not _DOTTED_DECIMAL.match(ip):
        return ip
    return '.'.join(str(int(octet)) for octet in ip.split('.'))


def normalize_source(source: str) -> str:
    """Lowercase a source name and replace characters outside [a-z0-9_-] with '_'."""
    return _SOURCE_INVALID_CHARS.sub('_', str(source or '').strip().lower())


def normalize_log(log: RawLog) -> RawLog:
    """Return a normalized copy of a record."""
    normalized = log.copy()
    normalized.log_level = normalize_level(normalized.log_level)
    normalized.timestamp = normalize_timestamp(normalized.timestamp)
    normalized.ip_address = normalize_ip(normalized.ip_address)
    normalized.source = normalize_source(normalized.source)
    return normalized
