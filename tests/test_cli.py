"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch):
    """Wide console output, no API key and only error-level logs."""
    from rich.console import Console

    from hashtracks.cli import main as cli_main
    from hashtracks.config.settings import Settings
    from hashtracks.core import base_adapter

    settings = Settings(_env_file=None, google_calendar_api_key=None, log_level="ERROR")
    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)
    monkeypatch.setattr(base_adapter, "get_settings", lambda: settings)
    monkeypatch.setattr(cli_main, "console", Console(width=200))


class TestSourcesCommand:
    """Tests for `hashtracks sources`."""

    def test_lists_sources(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["sources"])

        assert result.exit_code == 0
        assert "london-hash" in result.stdout
        assert "Total:" in result.stdout

    def test_filter_by_type(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["sources", "--type", "meetup", "-v"])

        assert result.exit_code == 0
        assert "brooklyn-meetup" in result.stdout
        assert "groupUrlname" in result.stdout
        assert "london-hash" not in result.stdout

    def test_invalid_type(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["sources", "--type", "BOGUS"])

        assert result.exit_code != 0


class TestScrapeCommand:
    """Tests for `hashtracks scrape`."""

    def test_requires_source_or_type(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["scrape"])

        assert result.exit_code == 1
        assert "Must specify --source or --type" in result.stdout

    def test_unknown_source(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["scrape", "--source", "no-such-hash"])

        assert result.exit_code == 1
        assert "Unknown source: no-such-hash" in result.stdout

    def test_json_output(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["scrape", "--source", "w3h3-schedule", "--days", "14", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        events = payload["w3h3-schedule"]["events"]
        assert len(events) >= 4
        assert all(e["kennelTag"] == "W3H3" and e["startTime"] == "19:00" for e in events)
        assert "errorDetails" not in payload["w3h3-schedule"]

    def test_summary_table(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["scrape", "--type", "STATIC_SCHEDULE", "--days", "7"])

        assert result.exit_code == 0
        assert "w3h3-schedule" in result.stdout
        assert "TOTAL:" in result.stdout

    def test_missing_credential_exits_nonzero(self):
        from hashtracks.cli import app

        result = runner.invoke(app, ["scrape", "--source", "boston-calendar"])

        assert result.exit_code == 1
        assert "GOOGLE_CALENDAR_API_KEY" in result.stdout

    def test_adapter_results_are_reported(self, monkeypatch):
        from hashtracks.cli import main as cli_main
        from hashtracks.core.scrape_result import ScrapeResult

        async def fake_run_source(source, days, deadline):
            return ScrapeResult.fetch_failure("HTTP 503", url=source.url, status=503)

        monkeypatch.setattr(cli_main, "run_source", fake_run_source)

        result = runner.invoke(cli_main.app, ["scrape", "--source", "london-hash"])

        assert result.exit_code == 0
        assert "FAILED" in result.stdout


class TestVersionCommand:
    """Tests for `hashtracks version`."""

    def test_shows_version_and_adapters(self):
        from hashtracks import __version__
        from hashtracks.cli import app

        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout
        assert "london_hash" in result.stdout
