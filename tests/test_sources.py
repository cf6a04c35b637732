"""
Unit tests for source adapters.
"""

import random

import pytest

from logpipe.collection import (
    FileSourceAdapter,
    SimulatedSourceAdapter,
    SourceAdapter,
    create_adapter,
)
from logpipe.ingestion import LogLineParser
from logpipe.models import LogLevel, LogSource, RawLog, SourceType


class TestSimulatedSourceAdapter:
    """Tests for the random record generator."""

    def test_fetch_count_and_shape(self):
        adapter = SimulatedSourceAdapter("web", SourceType.APPLICATION, rng=random.Random(7))

        for _ in range(20):
            logs = adapter.fetch()
            assert 1 <= len(logs) <= 5
            for log in logs:
                assert isinstance(log, RawLog)
                assert log.source == "web"
                assert log.log_level in SimulatedSourceAdapter.LEVELS
                assert log.ip_address.startswith("192.168.")
                assert log.metadata['hostname'] == "web-host"

    def test_seeded_output_is_reproducible(self):
        first = SimulatedSourceAdapter("db", SourceType.DATABASE, rng=random.Random(1)).fetch()
        second = SimulatedSourceAdapter("db", SourceType.DATABASE, rng=random.Random(1)).fetch()

        assert [log.message for log in first] == [log.message for log in second]

    def test_satisfies_protocol(self):
        assert isinstance(SimulatedSourceAdapter("x"), SourceAdapter)


class TestFileSourceAdapter:
    """Tests for file tailing."""

    def test_missing_file(self, tmp_path):
        adapter = FileSourceAdapter(tmp_path / "absent.log")
        assert adapter.fetch() == []

    def test_reads_only_new_lines(self, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("INFO [web] first\n")
        adapter = FileSourceAdapter(path)

        assert [log.message for log in adapter.fetch()] == ["first"]
        assert adapter.fetch() == []

        with open(path, "a") as f:
            f.write("ERROR [web] second\n")

        logs = adapter.fetch()
        assert [log.message for log in logs] == ["second"]
        assert logs[0].log_level == LogLevel.ERROR

    def test_partial_line_waits(self, tmp_path):
        """Test that an unterminated line is read once it is complete."""
        path = tmp_path / "app.log"
        path.write_text("INFO [web] done\nINFO [web] half")
        adapter = FileSourceAdapter(path)

        assert [log.message for log in adapter.fetch()] == ["done"]

        with open(path, "a") as f:
            f.write(" written\n")

        assert [log.message for log in adapter.fetch()] == ["half written"]

    def test_odd_json_line_keeps_chunk(self, tmp_path):
        """Test that a JSON line with scalar metadata doesn't lose its neighbours."""
        path = tmp_path / "app.jsonl"
        path.write_text(
            '{"message": "good", "source": "web"}\n'
            '{"message": "bad", "source": "web", "metadata": "oops"}\n'
        )
        adapter = FileSourceAdapter(path)

        assert [log.message for log in adapter.fetch()] == ["good", "bad"]
        assert adapter.fetch() == []

    def test_rejected_line_skipped(self, tmp_path):
        """Test that a strict parser's rejection skips only that line."""
        path = tmp_path / "app.jsonl"
        path.write_text(
            '{"message": "first", "source": "web"}\n'
            '{"broken": json}\n'
            '{"message": "third", "source": "web"}\n'
        )
        adapter = FileSourceAdapter(path, parser=LogLineParser(skip_invalid=False), format="json")

        assert [log.message for log in adapter.fetch()] == ["first", "third"]
        assert adapter.offset == path.stat().st_size
        assert adapter.fetch() == []

    def test_truncation_restarts(self, tmp_path):
        path = tmp_path / "app.log"
        path.write_text("INFO [web] one\nINFO [web] two\n")
        adapter = FileSourceAdapter(path)
        adapter.fetch()

        path.write_text("INFO [web] fresh\n")

        assert [log.message for log in adapter.fetch()] == ["fresh"]


class TestCreateAdapter:
    """Tests for endpoint-based adapter selection."""

    def test_simulated(self):
        source = LogSource(source_id="s", source_name="web", endpoint="simulated://web")
        assert isinstance(create_adapter(source), SimulatedSourceAdapter)

    def test_file_url(self, tmp_path):
        path = tmp_path / "a.log"
        source = LogSource(source_id="s", source_name="web", endpoint=f"file://{path}")

        adapter = create_adapter(source, format="text")

        assert isinstance(adapter, FileSourceAdapter)
        assert adapter.path == path
        assert adapter.format == "text"
        assert adapter.parser.default_source == "web"

    def test_bare_path(self, tmp_path):
        source = LogSource(source_id="s", source_name="web", endpoint=str(tmp_path / "a.log"))
        assert isinstance(create_adapter(source), FileSourceAdapter)

    def test_unsupported_scheme(self):
        source = LogSource(source_id="s", source_name="web", endpoint="kafka://broker:9092/logs")
        with pytest.raises(ValueError):
            create_adapter(source)
