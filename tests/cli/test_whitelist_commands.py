"""Tests for the remote-whitelist CLI commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from remote_whitelist import app
from remote_whitelist.sync.config import WhitelistConfig
from remote_whitelist.sync.errors import FetchError
from remote_whitelist.sync.fetcher import Fetcher, FetchResult

URL = "https://example.github.io/whitelist.txt"
BAD_URL = "https://exa\tmple.github.io/w.txt"

runner = CliRunner()


def _fetch_returning(body: str) -> AsyncMock:
    return AsyncMock(side_effect=lambda url: FetchResult(url=url, body=body))


class TestCheck:
    def test_member(self):
        with patch.object(Fetcher, "fetch", new=_fetch_returning("alice\r\nbob")):
            result = runner.invoke(app, ["check", URL, "--identity", "bob"])

        assert result.exit_code == 0
        assert "Parsed 2 valid names" in result.output
        assert "'bob' is whitelisted" in result.output

    def test_non_member_exits_2(self):
        with patch.object(Fetcher, "fetch", new=_fetch_returning("alice")):
            result = runner.invoke(app, ["check", URL, "--identity", "Alice"])

        assert result.exit_code == 2
        assert "is not whitelisted" in result.output

    def test_uses_configured_url(self):
        WhitelistConfig().set_url(URL)
        fetch = _fetch_returning("alice")

        with patch.object(Fetcher, "fetch", new=fetch):
            result = runner.invoke(app, ["check", "--no-entries"])

        assert result.exit_code == 0
        fetch.assert_awaited_once_with(URL)

    def test_missing_url(self):
        result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "Whitelist URL is not set" in result.output

    def test_fetch_error(self):
        failing = AsyncMock(side_effect=FetchError(URL, 404, "Not Found"))
        with patch.object(Fetcher, "fetch", new=failing):
            result = runner.invoke(app, ["check", URL])

        assert result.exit_code == 1
        assert "404 - Not Found" in result.output

    def test_malformed_url_reports_clean_error(self):
        result = runner.invoke(app, ["check", BAD_URL, "-i", "alice"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Failed to download whitelist" in result.output
        assert "Invalid URL" in result.output

    def test_untrusted_host_warns(self):
        with patch.object(Fetcher, "fetch", new=_fetch_returning("alice")):
            result = runner.invoke(app, ["check", "https://example.com/list.txt"])

        assert result.exit_code == 0
        assert "Not a known raw-text host" in result.output


class TestParse:
    def test_parse_file(self, tmp_path: Path):
        path = tmp_path / "list.txt"
        path.write_text("alice\n \nBob \r\ncharlie", encoding="utf-8")

        result = runner.invoke(app, ["parse", str(path), "--identity", "Bob"])

        assert result.exit_code == 0
        assert "charlie" in result.output
        assert "'Bob' is whitelisted" in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["parse", str(tmp_path / "nope.txt")])
        assert result.exit_code != 0


class TestConfigCommands:
    def test_set_and_show(self):
        assert runner.invoke(app, ["config", "set-url", URL]).exit_code == 0
        assert runner.invoke(app, ["config", "set-interval", "15"]).exit_code == 0
        assert runner.invoke(app, ["config", "set-target", "vip"]).exit_code == 0

        config = WhitelistConfig()
        assert config.get_url() == URL
        assert config.get_refresh_interval() == 15.0
        assert config.get_target() == "vip"

        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "15s" in result.output
        assert "vip" in result.output

    def test_set_interval_rejects_zero(self):
        result = runner.invoke(app, ["config", "set-interval", "0"])
        assert result.exit_code == 1

    def test_set_url_rejects_blank(self):
        result = runner.invoke(app, ["config", "set-url", "  "])
        assert result.exit_code == 1

    def test_set_url_rejects_malformed(self):
        for bad in (BAD_URL, "not a url", "ftp://example.github.io/w.txt"):
            result = runner.invoke(app, ["config", "set-url", bad])
            assert result.exit_code == 1, bad
            assert "Error:" in result.output

        assert WhitelistConfig().get_url() == ""

    def test_set_url_stores_stripped_url(self):
        result = runner.invoke(app, ["config", "set-url", f"  {URL} "])

        assert result.exit_code == 0
        assert WhitelistConfig().get_url() == URL


class TestSimulate:
    def test_simulate_reports_visibility(self):
        with patch.object(Fetcher, "fetch", new=_fetch_returning("bob")):
            result = runner.invoke(
                app,
                ["simulate", "-p", "alice", "-p", "bob", "--url", URL, "--duration", "0.1", "--tick", "0.01"],
            )

        assert result.exit_code == 0, result.output
        assert "bob: 'whitelisted' visible" in result.output
        assert "Final state" in result.output

    def test_simulate_late_join_and_migration(self):
        with patch.object(Fetcher, "fetch", new=_fetch_returning("carol")):
            result = runner.invoke(
                app,
                [
                    "simulate",
                    "-p", "alice",
                    "-p", "bob",
                    "--url", URL,
                    "--late-join", "carol@0.05",
                    "--leave-coordinator-after", "0.08",
                    "--duration", "0.15",
                    "--tick", "0.01",
                ],
            )

        assert result.exit_code == 0, result.output
        assert "alice left the session" in result.output
        assert "carol: 'whitelisted' visible" in result.output

    def test_bad_late_join_value(self):
        result = runner.invoke(app, ["simulate", "-p", "alice", "--late-join", "carol"])
        assert result.exit_code == 2
