"""
Data models for logpipe.

This module defines the core data structures passed between the collector,
the preprocessor and their consumers.
"""

import copy
import uuid
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from logpipe.collection.sources import SourceAdapter


class LogLevel(str, Enum):
    """Recognized log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def parse(cls, value: Any) -> Optional['LogLevel']:
        """Return the matching level (case-insensitive) or None."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class SourceType(str, Enum):
    """Kind of system a log source belongs to."""
    APPLICATION = "APPLICATION"
    SYSTEM = "SYSTEM"
    NETWORK = "NETWORK"
    DATABASE = "DATABASE"


def level_name(level: Union[LogLevel, str, None]) -> str:
    """Plain string form of a level, recognized or not."""
    if isinstance(level, LogLevel):
        return level.value
    return "" if level is None else str(level)


@dataclass
class RawLog:
    """
    A single log record as produced by a source.

    Attributes:
        source: Free-text origin name (service, host, application)
        log_level: A LogLevel, or the unrecognized string a source reported
        message: The log message content
        timestamp: When the event occurred. Before normalization this may
            still be an ISO string or an epoch number.
        metadata: Open key-value mapping
        ip_address: Address the record originated from
        user_id: Optional user identifier, taken from metadata when omitted
        log_id: Unique identifier
    """

    source: str
    log_level: Union[LogLevel, str]
    message: str
    timestamp: Union[datetime, str, int, float, None] = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
    ip_address: str = "unknown"
    user_id: Optional[str] = None
    log_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}
        if self.user_id is None:
            self.user_id = self.metadata.get('userId') or self.metadata.get('user_id')

    def copy(self) -> 'RawLog':
        """Return a copy that shares no mutable state with this record."""
        return replace(self, metadata=copy.deepcopy(self.metadata))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the record to a JSON-compatible dictionary.

        Returns:
            Dictionary representation of the record
        """
        timestamp = self.timestamp
        if isinstance(timestamp, datetime):
            timestamp = timestamp.isoformat()
        return {
            'log_id': self.log_id,
            'timestamp': timestamp,
            'source': self.source,
            'log_level': level_name(self.log_level),
            'message': self.message,
            'metadata': self.metadata,
            'ip_address': self.ip_address,
            'user_id': self.user_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawLog':
        """
        Create a RawLog from a dictionary.

        Accepts both ``log_level`` and the shorter ``level`` key. The
        timestamp is kept as given; normalization parses it later.

        Args:
            data: Dictionary containing record fields

        Returns:
            RawLog instance

        Raises:
            KeyError: If ``message`` is missing
        """
        level = data.get('log_level', data.get('level', LogLevel.INFO.value))
        kwargs = {
            'source': data.get('source', ''),
            'log_level': LogLevel.parse(level) or level,
            'message': data['message'],
            'metadata': dict(data.get('metadata') or {}),
            'ip_address': data.get('ip_address', 'unknown'),
            'user_id': data.get('user_id'),
        }
        if data.get('timestamp') is not None:
            kwargs['timestamp'] = data['timestamp']
        if data.get('log_id'):
            kwargs['log_id'] = data['log_id']
        return cls(**kwargs)

    def __str__(self) -> str:
        timestamp = self.timestamp.isoformat() if isinstance(self.timestamp, datetime) else self.timestamp
        return f"[{timestamp}] [{level_name(self.log_level)}] [{self.source}] {self.message}"


@dataclass
class LogFeatures:
    """Fixed-shape numeric and boolean features of a message."""

    message_length: int = 0
    has_error: bool = False
    has_warning: bool = False
    contains_ip: bool = False
    contains_url: bool = False
    contains_email: bool = False
    word_count: int = 0
    special_char_count: int = 0


@dataclass
class EnrichedMetadata:
    """Context derived from a record's address and timestamp."""

    ip_type: Optional[str] = None
    time_of_day: Optional[str] = None
    day_of_week: Optional[str] = None
    is_business_hours: Optional[bool] = None


@dataclass
class ProcessedLog(RawLog):
    """
    A record that went through the preprocessing pipeline.

    Extends RawLog with the normalized message, its tokens, extracted
    features, enrichment and the validation verdict. ``validation_errors``
    lists every reason the record was flagged invalid.
    """

    normalized_message: str = ""
    tokens: List[str] = field(default_factory=list)
    features: LogFeatures = field(default_factory=LogFeatures)
    enriched_metadata: EnrichedMetadata = field(default_factory=EnrichedMetadata)
    is_valid: bool = False
    validation_errors: List[str] = field(default_factory=list)
    processing_timestamp: Optional[datetime] = None

    @classmethod
    def from_raw(cls, log: RawLog) -> 'ProcessedLog':
        """Start a processed record from a (copied) raw record."""
        return cls(
            source=log.source,
            log_level=log.log_level,
            message=log.message,
            timestamp=log.timestamp,
            metadata=copy.deepcopy(log.metadata),
            ip_address=log.ip_address,
            user_id=log.user_id,
            log_id=log.log_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, including pipeline output fields."""
        result = super().to_dict()
        result.update({
            'normalized_message': self.normalized_message,
            'tokens': list(self.tokens),
            'features': asdict(self.features),
            'enriched_metadata': asdict(self.enriched_metadata),
            'is_valid': self.is_valid,
            'validation_errors': list(self.validation_errors),
            'processing_timestamp': (
                self.processing_timestamp.isoformat() if self.processing_timestamp else None
            ),
        })
        return result


@dataclass
class LogSource:
    """
    An external origin of log records, polled on an interval.

    Attributes:
        source_id: Unique identifier
        source_name: Human-readable name, stamped on generated records
        source_type: Kind of system
        endpoint: Where the adapter reads from (``simulated://``, a file path, ...)
        is_active: Whether the source should be polled
        poll_interval: Seconds between fetches, must be positive
        adapter: Fetches records for this source. When omitted the collector
            resolves one from the endpoint.

    Raises:
        ValueError: If the identifier is empty or the interval is not positive
    """

    source_id: str
    source_name: str
    source_type: SourceType = SourceType.APPLICATION
    endpoint: str = "simulated://"
    is_active: bool = True
    poll_interval: float = 5.0
    adapter: Optional['SourceAdapter'] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.source_id:
            raise ValueError("source_id cannot be empty")
        if isinstance(self.source_type, str) and not isinstance(self.source_type, SourceType):
            try:
                self.source_type = SourceType(self.source_type.upper())
            except ValueError:
                raise ValueError(
                    f"source_type must be one of {[t.value for t in SourceType]}, "
                    f"got '{self.source_type}'"
                )
        if self.poll_interval is None or self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")

    def copy(self) -> 'LogSource':
        return replace(self)


@dataclass(frozen=True)
class CollectionStats:
    """Read-only snapshot of collector counters."""

    total_logs_collected: int = 0
    logs_per_second: float = 0.0
    error_count: int = 0
    rejected_logs: int = 0
    evicted_logs: int = 0
    buffer_size: int = 0
    last_collection_time: Optional[datetime] = None
    active_sources_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        if self.last_collection_time:
            result['last_collection_time'] = self.last_collection_time.isoformat()
        return result


@dataclass(frozen=True)
class PreprocessingStats:
    """Read-only snapshot of preprocessor counters."""

    total_processed: int = 0
    valid_logs: int = 0
    invalid_logs: int = 0
    filtered_logs: int = 0
    transformed_logs: int = 0
    average_processing_time: float = 0.0  # milliseconds
    last_processing_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        if self.last_processing_time:
            result['last_processing_time'] = self.last_processing_time.isoformat()
        return result


@dataclass(frozen=True)
class BatchSummary:
    """Totals for one ``batch_preprocess`` call."""

    total: int
    successful: int
    valid: int
    invalid: int

    @property
    def rejected(self) -> int:
        """Records that produced no output (filtered, faulted, inactive)."""
        return self.total - self.successful
