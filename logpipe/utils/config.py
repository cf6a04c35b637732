"""
Configuration management for logpipe.

Supports YAML configuration files for defining sources, filters and
collector settings without code changes.
"""

import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from logpipe.collection import LogCollector, MAX_BUFFER_SIZE, create_adapter
from logpipe.events import EventBus
from logpipe.models import LogSource
from logpipe.processing import Filter, LogPreprocessor


def parse_duration(value: Union[str, int, float, timedelta]) -> float:
    """
    Parse a duration into seconds.

    Accepts numbers (seconds), timedelta, and strings like '30s', '5m',
    '1h', '2d' or '2.5'.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    text = str(value).strip().lower()
    try:
        return float(text)
    except ValueError:
        pass

    match = re.match(r'^(\d+(?:\.\d+)?)([smhd])$', text)
    if not match:
        raise ValueError(
            f"Invalid duration format: {value}. "
            f"Expected seconds or <number><unit> (e.g., '5s', '1m', '1h')"
        )

    unit_map = {
        's': 'seconds',
        'm': 'minutes',
        'h': 'hours',
        'd': 'days'
    }
    return timedelta(**{unit_map[match.group(2)]: float(match.group(1))}).total_seconds()


@dataclass
class SourceConfig:
    """Configuration for a single log source."""

    source_id: str
    source_name: str
    source_type: str = "APPLICATION"
    endpoint: str = "simulated://"
    is_active: bool = True
    poll_interval: Union[str, float] = "5s"
    format: str = "auto"  # only used by file endpoints


@dataclass
class FilterConfig:
    """Configuration for a single filter."""

    filter_id: str
    type: str
    condition: str
    name: Optional[str] = None
    is_active: bool = True


@dataclass
class CollectorConfig:
    """Configuration for the collector."""

    buffer_capacity: int = MAX_BUFFER_SIZE
    max_workers: int = 10


@dataclass
class PreprocessorConfig:
    """Configuration for the preprocessor."""

    default_transformations: bool = True


@dataclass
class PipelineConfig:
    """Main configuration class."""

    sources: List[SourceConfig] = field(default_factory=list)
    filters: List[FilterConfig] = field(default_factory=list)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    preprocessor: PreprocessorConfig = field(default_factory=PreprocessorConfig)
    log_level: str = "WARNING"

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'PipelineConfig':
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            PipelineConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PipelineConfig':
        """
        Create config from dictionary.

        Raises:
            ValueError: If a section has unknown or missing keys
        """
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a mapping")

        try:
            sources = [SourceConfig(**s) for s in data.get('sources') or []]
            filters = [FilterConfig(**f) for f in data.get('filters') or []]
            collector = CollectorConfig(**(data.get('collector') or {}))
            preprocessor = PreprocessorConfig(**(data.get('preprocessor') or {}))
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {e}")

        return cls(
            sources=sources,
            filters=filters,
            collector=collector,
            preprocessor=preprocessor,
            log_level=str(data.get('log_level', 'WARNING')).upper(),
        )

    def to_sources(self) -> List[LogSource]:
        """
        Convert source configs to LogSource objects with their adapters.

        Raises:
            ValueError: If a source has an invalid interval, type or endpoint
        """
        sources = []
        for source_config in self.sources:
            source = LogSource(
                source_id=source_config.source_id,
                source_name=source_config.source_name,
                source_type=source_config.source_type,
                endpoint=source_config.endpoint,
                is_active=source_config.is_active,
                poll_interval=parse_duration(source_config.poll_interval),
            )
            source.adapter = create_adapter(source, format=source_config.format)
            sources.append(source)
        return sources

    def to_filters(self) -> List[Filter]:
        """
        Convert filter configs to Filter objects.

        Raises:
            ValueError: If a filter has an unknown type or a bad condition
        """
        return [
            Filter(
                filter_id=filter_config.filter_id,
                name=filter_config.name or filter_config.filter_id,
                type=filter_config.type,
                condition=filter_config.condition,
                is_active=filter_config.is_active,
            )
            for filter_config in self.filters
        ]

    def build_collector(self, events: Optional[EventBus] = None) -> LogCollector:
        """Create a collector with every configured source registered."""
        collector = LogCollector(
            buffer_capacity=self.collector.buffer_capacity,
            events=events,
            max_workers=self.collector.max_workers,
        )
        for source in self.to_sources():
            collector.add_source(source)
        return collector

    def build_preprocessor(self, events: Optional[EventBus] = None) -> LogPreprocessor:
        """Create a preprocessor with every configured filter registered."""
        preprocessor = LogPreprocessor(
            events=events,
            use_default_transformations=self.preprocessor.default_transformations,
        )
        for log_filter in self.to_filters():
            preprocessor.add_filter(log_filter)
        return preprocessor


def load_config(config_path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """
    Load configuration from file or return default.

    Args:
        config_path: Path to config file. If None, looks for logpipe.yaml in current dir

    Returns:
        PipelineConfig instance
    """
    if config_path is None:
        # Look for config in common locations
        possible_paths = [
            Path("logpipe.yaml"),
            Path("logpipe.yml"),
            Path(".logpipe.yaml"),
            Path("~/.logpipe.yaml").expanduser(),
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break

        if config_path is None:
            return PipelineConfig()

    return PipelineConfig.from_file(config_path)


DEFAULT_CONFIG = {
    'log_level': 'WARNING',

    'collector': {
        'buffer_capacity': MAX_BUFFER_SIZE,
        'max_workers': 10,
    },

    'preprocessor': {
        'default_transformations': True,
    },

    'sources': [
        {
            'source_id': 'web-app',
            'source_name': 'web',
            'source_type': 'APPLICATION',
            'endpoint': 'simulated://web',
            'poll_interval': '2s',
        },
        {
            'source_id': 'db-primary',
            'source_name': 'postgres',
            'source_type': 'DATABASE',
            'endpoint': 'simulated://postgres',
            'poll_interval': '5s',
        },
        {
            'source_id': 'syslog',
            'source_name': 'syslog',
            'source_type': 'SYSTEM',
            'endpoint': 'file:///var/log/syslog',
            'poll_interval': '10s',
            'format': 'text',
            'is_active': False,
        },
    ],

    'filters': [
        {
            'filter_id': 'drop-debug',
            'name': 'Drop debug logs',
            'type': 'exclude',
            'condition': "logLevel == 'DEBUG'",
        },
    ],
}


def create_default_config(config_path: Union[str, Path] = "logpipe.yaml") -> None:
    """
    Create a default configuration file.

    Args:
        config_path: Path where to create the config file
    """
    with open(config_path, 'w') as f:
        yaml.dump(DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
