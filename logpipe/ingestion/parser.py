"""
Log line parser.

This module turns individual log lines into RawLog records. It supports
JSON lines, free-form plain text and the whitespace-separated
``date time level source message`` layout.
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Iterator, TextIO, Optional, Dict, Any, Union

from logpipe.models import RawLog, LogLevel

FORMATS = ('auto', 'json', 'text', 'fields')

# Level reported for lines whose structure could not be recovered
UNKNOWN_LEVEL = "UNKNOWN"


class LogLineParser:
    """
    Parses log lines into RawLog records.

    Parsing never validates content: a record with a strange level or an
    unparseable timestamp is still produced so the preprocessor can flag it.
    Only lines that cannot become a record at all (broken JSON) are skipped.
    """

    # Common timestamp patterns for plain text logs
    TIMESTAMP_PATTERNS = [
        # ISO format: 2024-01-01T12:00:00 or 2024-01-01T12:00:00.123Z
        re.compile(r'(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})?)\s*'),
        # Standard format: 2024-01-01 12:00:00 or 2024-01-01 12:00:00.123
        re.compile(r'(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}(?:\.\d+)?)\s*'),
        # Unix timestamp (standalone, not part of other numbers)
        re.compile(r'\b(\d{10}(?:\.\d+)?)\b'),
    ]

    LEVEL_PATTERN = re.compile(r'\b(DEBUG|INFO|WARNING|WARN|ERROR|CRITICAL|FATAL)\b', re.IGNORECASE)

    # Aliases some emitters use for the recognized levels
    LEVEL_ALIASES = {'WARN': 'WARNING', 'FATAL': 'CRITICAL'}

    BRACKET_SOURCE = re.compile(r'[\[\(]([a-zA-Z0-9_.-]+)[\]\)]')
    COLON_SOURCE = re.compile(r'^\s*([a-zA-Z][a-zA-Z0-9_.-]*):\s')
    IP_PATTERN = re.compile(r'\b(\d{1,3}(?:\.\d{1,3}){3})\b')

    def __init__(
        self,
        default_source: str = "unknown",
        default_level: str = "INFO",
        skip_invalid: bool = True
    ):
        """
        Initialize the parser.

        Args:
            default_source: Source name used when a line does not carry one
            default_level: Level used when a line does not carry one
            skip_invalid: If True, skip or flag malformed lines instead of raising
        """
        self.default_source = default_source
        self.default_level = default_level
        self.skip_invalid = skip_invalid

    def parse_file(
        self,
        file_path: Union[str, Path],
        format: str = "auto"
    ) -> Iterator[RawLog]:
        """
        Parse every line of a file.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Log file not found: {file_path}")

        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            yield from self.parse_stream(f, format)

    def parse_stream(self, stream: TextIO, format: str = "auto") -> Iterator[RawLog]:
        """
        Parse a stream line by line.

        Args:
            stream: File-like object to read from
            format: One of 'auto', 'json', 'text' or 'fields'

        Yields:
            RawLog records in stream order
        """
        for line_num, line in enumerate(stream, start=1):
            log = self.parse_line(line, format=format, line_number=line_num)
            if log is not None:
                yield log

    def parse_line(
        self,
        line: str,
        format: str = "auto",
        line_number: Optional[int] = None
    ) -> Optional[RawLog]:
        """
        Parse a single line.

        Returns:
            A RawLog, or None for blank and skipped lines

        Raises:
            ValueError: If the format is unknown, or the line is malformed
                and ``skip_invalid`` is False
        """
        if format not in FORMATS:
            raise ValueError(f"Unsupported format: {format}. Use one of {FORMATS}")

        line = line.strip()
        if not line:
            return None

        if format == "auto":
            format = "json" if line.startswith('{') else "text"

        if format == "json":
            return self._parse_json(line, line_number)
        if format == "fields":
            return self._parse_fields(line, line_number)
        return self._parse_text(line, line_number)

    def _parse_json(self, line: str, line_number: Optional[int]) -> Optional[RawLog]:
        """
        Parse one JSON object.

        Recognized keys are timestamp, level / log_level, source, message,
        metadata, ip_address and user_id. Any other key is folded into the
        metadata.
        """
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            if not self.skip_invalid:
                raise ValueError(f"Invalid JSON on line {line_number}: {e}")
            return None

        if not isinstance(data, dict):
            if not self.skip_invalid:
                raise ValueError(f"Expected a JSON object on line {line_number}")
            return None

        known_fields = {'timestamp', 'level', 'log_level', 'source', 'message',
                        'metadata', 'ip_address', 'user_id', 'log_id'}
        # A non-object metadata value is kept as-is under its own key
        raw_metadata = data.get('metadata')
        if isinstance(raw_metadata, dict):
            metadata: Dict[str, Any] = dict(raw_metadata)
        elif raw_metadata is None:
            metadata = {}
        else:
            metadata = {'metadata': raw_metadata}
        for key, value in data.items():
            if key not in known_fields:
                metadata[key] = value

        record = {
            'timestamp': data.get('timestamp'),
            'level': data.get('log_level', data.get('level', self.default_level)),
            'source': data.get('source', self.default_source),
            'message': data.get('message', ''),
            'metadata': metadata,
            'ip_address': data.get('ip_address', metadata.get('ipAddress', 'unknown')),
            'user_id': data.get('user_id'),
            'log_id': data.get('log_id'),
        }
        return RawLog.from_dict(record)

    def _parse_fields(self, line: str, line_number: Optional[int]) -> RawLog:
        """
        Parse ``<date> <time> <level> <source> <message...>``.

        A line with fewer than five fields is still returned, with an
        UNKNOWN level and a ``parse_error`` metadata entry, so that it is
        flagged invalid downstream instead of silently disappearing.
        """
        parts = line.split()
        if len(parts) < 5:
            if not self.skip_invalid:
                raise ValueError(f"Invalid log format on line {line_number}: {line}")
            return RawLog(
                source=self.default_source,
                log_level=UNKNOWN_LEVEL,
                message=line,
                timestamp=None,
                metadata={'line_number': line_number, 'raw_line': line,
                          'parse_error': f"expected 5 fields, got {len(parts)}"},
            )

        level = self._canonical_level(parts[2])
        message = " ".join(parts[4:])
        return RawLog(
            source=parts[3],
            log_level=LogLevel.parse(level) or level,
            message=message,
            timestamp=f"{parts[0]} {parts[1]}",
            metadata={'line_number': line_number, 'raw_line': line},
            ip_address=self._find_ip(message),
        )

    def _parse_text(self, line: str, line_number: Optional[int]) -> RawLog:
        """
        Parse a free-form line by peeling off a leading timestamp, a level
        keyword and a ``[source]`` / ``source:`` marker. Whatever remains is
        the message.
        """
        rest = line
        timestamp: Union[datetime, str] = datetime.now()
        for pattern in self.TIMESTAMP_PATTERNS:
            match = pattern.search(rest)
            if match:
                parsed = self.parse_timestamp(match.group(1).strip())
                if parsed is not None:
                    timestamp = parsed
                    rest = rest[:match.start()] + rest[match.end():]
                    break

        level = self.default_level
        match = self.LEVEL_PATTERN.search(rest)
        if match:
            level = self._canonical_level(match.group(1))
            rest = rest[:match.start()] + rest[match.end():]

        source = self.default_source
        match = self.BRACKET_SOURCE.search(rest)
        if match:
            source = match.group(1)
            rest = rest[:match.start()] + rest[match.end():]
        else:
            match = self.COLON_SOURCE.match(rest)
            if match and not match.group(1).isdigit():
                source = match.group(1)
                rest = rest[match.end():]

        message = re.sub(r'\s+', ' ', rest).strip()
        # Remove leading separators
        message = re.sub(r'^[:\-\s]+', '', message).strip()
        if not message:
            message = line

        return RawLog(
            source=source,
            log_level=LogLevel.parse(level) or level,
            message=message,
            timestamp=timestamp,
            metadata={'line_number': line_number, 'raw_line': line},
            ip_address=self._find_ip(message),
        )

    @classmethod
    def parse_timestamp(cls, value: Any) -> Optional[datetime]:
        """
        Parse a timestamp from a datetime, an ISO string or a Unix epoch.

        Returns:
            datetime, or None if the value cannot be parsed
        """
        if isinstance(value, datetime):
            return value

        if isinstance(value, bool):
            return None

        if isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value)
            except (ValueError, OverflowError, OSError):
                return None

        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                return datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                pass
            if re.fullmatch(r'\d{10}(?:\.\d+)?', text):
                return cls.parse_timestamp(float(text))

        return None

    def _canonical_level(self, level: str) -> str:
        level = level.upper()
        return self.LEVEL_ALIASES.get(level, level)

    def _find_ip(self, message: str) -> str:
        match = self.IP_PATTERN.search(message)
        return match.group(1) if match else "unknown"
