"""
Tests for the command-line interface.
"""

import json

import yaml
from typer.testing import CliRunner

from logpipe.cli.main import app

runner = CliRunner()


SAMPLE_LOG = (
    '2024-01-01T10:00:00 INFO [web] User login succeeded\n'
    '2024-01-01T10:00:01 DEBUG [web] Cache warmed\n'
    '{"timestamp": "2024-01-01T10:00:02", "level": "ERROR", "source": "db", '
    '"message": "Query failed", "metadata": {"password": "hunter2"}}\n'
    '2024-01-01T10:00:03 INFO [web] ok\n'
)


class TestPreprocessCommand:
    """Tests for `logpipe preprocess`."""

    def test_json_output(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        logfile = tmp_path / "app.log"
        logfile.write_text(SAMPLE_LOG)

        result = runner.invoke(app, ["preprocess", str(logfile), "--output", "json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [log['message'] for log in payload['logs']] == [
            "User login succeeded", "Cache warmed", "Query failed", "ok"
        ]
        assert payload['logs'][2]['metadata']['password'] == "[REDACTED]"
        assert payload['stats']['valid_logs'] == 3
        assert payload['stats']['invalid_logs'] == 1

    def test_config_filters_apply(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        logfile = tmp_path / "app.log"
        logfile.write_text(SAMPLE_LOG)
        config = tmp_path / "pipeline.yaml"
        config.write_text(yaml.dump({
            'filters': [{'filter_id': 'drop-debug', 'type': 'exclude', 'condition': "logLevel == 'DEBUG'"}],
        }))

        result = runner.invoke(app, [
            "preprocess", str(logfile), "--config", str(config), "--output", "json", "--show-invalid",
        ])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [log['message'] for log in payload['logs']] == ["ok"]
        assert payload['stats']['filtered_logs'] == 1

    def test_table_output(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        logfile = tmp_path / "app.log"
        logfile.write_text(SAMPLE_LOG)

        result = runner.invoke(app, ["preprocess", str(logfile)])

        assert result.exit_code == 0
        assert "Preprocessing Stats" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["preprocess", str(tmp_path / "absent.log")])
        assert result.exit_code == 1

    def test_unknown_format(self, tmp_path):
        logfile = tmp_path / "app.log"
        logfile.write_text(SAMPLE_LOG)

        result = runner.invoke(app, ["preprocess", str(logfile), "--format", "xml"])

        assert result.exit_code == 1

    def test_bad_explicit_config(self, tmp_path):
        logfile = tmp_path / "app.log"
        logfile.write_text(SAMPLE_LOG)

        result = runner.invoke(app, ["preprocess", str(logfile), "--config", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 1


class TestCollectCommand:
    """Tests for `logpipe collect`."""

    def test_collect_from_file_source(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        logfile = tmp_path / "app.log"
        logfile.write_text(SAMPLE_LOG)
        config = tmp_path / "pipeline.yaml"
        config.write_text(yaml.dump({
            'sources': [{
                'source_id': 'app',
                'source_name': 'app',
                'endpoint': str(logfile),
                'poll_interval': 0.1,
            }],
        }))

        result = runner.invoke(app, [
            "collect", "--config", str(config), "--duration", "0.5", "--output", "json",
        ])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload['collection']['total_logs_collected'] == 4
        assert len(payload['logs']) == 4

    def test_no_sources(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))

        result = runner.invoke(app, ["collect", "--duration", "0"])

        assert result.exit_code == 1


class TestConfigCommand:
    """Tests for `logpipe config`."""

    def test_init(self, tmp_path):
        path = tmp_path / "logpipe.yaml"

        result = runner.invoke(app, ["config", "init", "--path", str(path)])

        assert result.exit_code == 0
        assert path.exists()
        assert len(yaml.safe_load(path.read_text())['sources']) == 3

    def test_unknown_action(self):
        result = runner.invoke(app, ["config", "destroy"])
        assert result.exit_code == 1
