"""
Source adapters.

An adapter fetches the records a single LogSource has produced since the
last call. The collector only relies on ``fetch()``; how records are obtained
(generated, tailed from a file, pulled from an API) is up to the adapter.
"""

import logging
import os
import random
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable
from urllib.parse import urlparse

from logpipe.ingestion.parser import LogLineParser
from logpipe.models import LogLevel, LogSource, RawLog, SourceType

logger = logging.getLogger(__name__)


@runtime_checkable
class SourceAdapter(Protocol):
    """Fetches new records for one source. ``fetch`` may raise."""

    def fetch(self) -> List[RawLog]:
        ...


class SimulatedSourceAdapter:
    """
    Generates a handful of random records per fetch.

    Stands in for a real feed in demos and tests. Pass a seeded
    ``random.Random`` for reproducible output.
    """

    LEVELS = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARNING, LogLevel.ERROR]

    MESSAGES = {
        SourceType.APPLICATION: ['User login', 'API call completed', 'Request failed with error 500',
                                 'Cache hit', 'Session expired'],
        SourceType.SYSTEM: ['Disk usage at 85%', 'Service restarted', 'Kernel warning: high load',
                            'Cron job finished'],
        SourceType.NETWORK: ['Connection timeout', 'Packet dropped', 'Firewall rule matched',
                             'Interface eth0 up'],
        SourceType.DATABASE: ['Database query', 'Slow query detected', 'Deadlock exception',
                              'Replication lag warning'],
    }

    def __init__(
        self,
        source_name: str,
        source_type: SourceType = SourceType.APPLICATION,
        max_records: int = 5,
        rng: Optional[random.Random] = None
    ):
        self.source_name = source_name
        self.source_type = source_type
        self.max_records = max_records
        self.rng = rng or random.Random()

    def fetch(self) -> List[RawLog]:
        count = self.rng.randint(1, self.max_records)
        return [self._generate() for _ in range(count)]

    def _generate(self) -> RawLog:
        ip = f"192.168.{self.rng.randint(0, 254)}.{self.rng.randint(0, 254)}"
        metadata = {
            'hostname': f"{self.source_name}-host",
            'ipAddress': ip,
            'requestId': f"req-{self.rng.getrandbits(32):08x}",
        }
        return RawLog(
            source=self.source_name,
            log_level=self.rng.choice(self.LEVELS),
            message=self.rng.choice(self.MESSAGES[self.source_type]),
            metadata=metadata,
            ip_address=ip,
        )


class FileSourceAdapter:
    """
    Tails a log file.

    Each fetch parses the complete lines appended since the previous fetch.
    A file that shrank or was replaced is read again from the start; a file
    that does not exist yet yields nothing.
    """

    def __init__(self, path, parser: Optional[LogLineParser] = None, format: str = "auto"):
        self.path = Path(path)
        self.parser = parser or LogLineParser()
        self.format = format
        self.offset = 0
        self.inode: Optional[int] = None

    def fetch(self) -> List[RawLog]:
        if not self.path.exists():
            logger.debug("Source file %s does not exist yet", self.path)
            return []

        stat = os.stat(self.path)
        if stat.st_ino != self.inode or stat.st_size < self.offset:
            self.offset = 0
            self.inode = stat.st_ino

        if stat.st_size <= self.offset:
            return []

        logs: List[RawLog] = []
        with open(self.path, 'rb') as f:
            f.seek(self.offset)
            data = f.read()

        # Keep a trailing partial line for the next fetch
        end = data.rfind(b'\n') + 1
        if end == 0:
            return []

        for line in data[:end].decode('utf-8', errors='replace').splitlines():
            try:
                log = self.parser.parse_line(line, format=self.format)
            except ValueError as e:
                logger.warning("Skipping malformed line in %s: %s", self.path, e)
                continue
            if log is not None:
                logs.append(log)

        self.offset += end
        return logs


def create_adapter(
    source: LogSource,
    format: str = "auto",
    rng: Optional[random.Random] = None
) -> SourceAdapter:
    """
    Build an adapter from a source's endpoint.

    ``simulated`` or ``simulated://...`` gives a SimulatedSourceAdapter;
    ``file://<path>`` or a plain path gives a FileSourceAdapter.

    Raises:
        ValueError: For any other endpoint scheme
    """
    endpoint = (source.endpoint or "").strip()
    parsed = urlparse(endpoint)

    if endpoint == "simulated" or parsed.scheme == "simulated":
        return SimulatedSourceAdapter(source.source_name, source.source_type, rng=rng)

    if parsed.scheme == "file":
        path = parsed.netloc + parsed.path
    elif parsed.scheme and len(parsed.scheme) > 1:
        raise ValueError(f"Unsupported source endpoint: {endpoint}")
    else:
        # Bare paths, including Windows drive letters
        path = endpoint

    if not path:
        raise ValueError(f"Source {source.source_id} has no endpoint")

    parser = LogLineParser(default_source=source.source_name)
    return FileSourceAdapter(path, parser=parser, format=format)
