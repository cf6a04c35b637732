"""
Unit tests for the data model.

Focuses on record copying, serialization and construction-time validation.
"""

import pytest
from datetime import datetime

from logpipe.models import (
    BatchSummary,
    LogLevel,
    LogSource,
    ProcessedLog,
    RawLog,
    SourceType,
    level_name,
)


class TestRawLog:
    """Tests for RawLog."""

    def test_defaults(self):
        """Test that identity and timestamp are filled in."""
        log = RawLog(source="app", log_level=LogLevel.INFO, message="hello")

        assert log.log_id
        assert isinstance(log.timestamp, datetime)
        assert log.metadata == {}
        assert log.ip_address == "unknown"

    def test_unique_ids(self):
        """Test that every record gets its own id."""
        ids = {RawLog(source="app", log_level="INFO", message="m").log_id for _ in range(50)}
        assert len(ids) == 50

    def test_user_id_from_metadata(self):
        """Test that user_id falls back to the metadata entry."""
        log = RawLog(source="app", log_level="INFO", message="m", metadata={'userId': 'u-42'})
        assert log.user_id == 'u-42'

    def test_copy_is_independent(self):
        """Test that a copy shares no mutable state."""
        log = RawLog(source="app", log_level="INFO", message="m",
                     metadata={'nested': {'key': 'value'}})
        clone = log.copy()

        clone.metadata['nested']['key'] = 'changed'
        clone.message = 'other'

        assert log.metadata['nested']['key'] == 'value'
        assert log.message == 'm'
        assert clone.log_id == log.log_id

    def test_to_dict_round_trip(self):
        """Test dictionary conversion keeps every field."""
        log = RawLog(source="app", log_level=LogLevel.ERROR, message="boom",
                     timestamp=datetime(2024, 1, 1, 12, 0, 0), ip_address="10.0.0.1")
        data = log.to_dict()

        assert data['timestamp'] == '2024-01-01T12:00:00'
        assert data['log_level'] == 'ERROR'

        restored = RawLog.from_dict(data)
        assert restored.log_id == log.log_id
        assert restored.log_level == LogLevel.ERROR
        assert restored.source == "app"

    def test_from_dict_accepts_short_level_key(self):
        """Test that 'level' works as well as 'log_level'."""
        log = RawLog.from_dict({'level': 'warning', 'source': 'db', 'message': 'slow'})
        assert log.log_level == LogLevel.WARNING

    def test_from_dict_keeps_unknown_level(self):
        """Test that unrecognized levels survive for validation to flag."""
        log = RawLog.from_dict({'level': 'VERBOSE', 'source': 'db', 'message': 'slow'})
        assert log.log_level == 'VERBOSE'


class TestProcessedLog:
    """Tests for ProcessedLog."""

    def test_from_raw(self):
        """Test that a processed record starts from the raw fields."""
        raw = RawLog(source="app", log_level="INFO", message="m", metadata={'a': 1})
        processed = ProcessedLog.from_raw(raw)

        assert processed.log_id == raw.log_id
        assert processed.metadata == {'a': 1}
        assert processed.metadata is not raw.metadata
        assert processed.is_valid is False
        assert processed.tokens == []

    def test_to_dict_includes_pipeline_fields(self):
        """Test dictionary conversion of pipeline output."""
        processed = ProcessedLog(source="app", log_level=LogLevel.INFO, message="m")
        data = processed.to_dict()

        assert 'features' in data
        assert 'enriched_metadata' in data
        assert data['features']['message_length'] == 0
        assert data['processing_timestamp'] is None


class TestLogSource:
    """Tests for LogSource validation."""

    def test_valid_source(self):
        source = LogSource(source_id="s1", source_name="web", poll_interval=1.5)
        assert source.source_type == SourceType.APPLICATION
        assert source.is_active

    def test_source_type_from_string(self):
        source = LogSource(source_id="s1", source_name="db", source_type="database")
        assert source.source_type == SourceType.DATABASE

    @pytest.mark.parametrize("interval", [0, -1, None])
    def test_non_positive_interval(self, interval):
        """Test that intervals must be positive."""
        with pytest.raises(ValueError):
            LogSource(source_id="s1", source_name="web", poll_interval=interval)

    def test_unknown_source_type(self):
        with pytest.raises(ValueError):
            LogSource(source_id="s1", source_name="web", source_type="MAINFRAME")

    def test_empty_id(self):
        with pytest.raises(ValueError):
            LogSource(source_id="", source_name="web")


class TestHelpers:
    """Tests for small model helpers."""

    def test_level_parse(self):
        assert LogLevel.parse("error") == LogLevel.ERROR
        assert LogLevel.parse(" Critical ") == LogLevel.CRITICAL
        assert LogLevel.parse("nope") is None

    def test_level_name(self):
        assert level_name(LogLevel.DEBUG) == "DEBUG"
        assert level_name("custom") == "custom"
        assert level_name(None) == ""

    def test_batch_summary_rejected(self):
        summary = BatchSummary(total=5, successful=3, valid=2, invalid=1)
        assert summary.rejected == 2
