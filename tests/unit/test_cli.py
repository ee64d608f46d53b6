"""Tests for the slackpaste command-line entry point."""

from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import pytest

from slackpaste import cli
from slackpaste.config import ExtractConfig

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _no_log_files(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the CLI from attaching handlers and writing log files."""
    monkeypatch.setattr(cli, "_setup_logging", lambda *args, **kwargs: None)


class TestMain:
    def test_writes_html_transcript(self, tmp_path: Path, slack_thread_html: str) -> None:
        source = tmp_path / "thread.html"
        source.write_text(slack_thread_html, encoding="utf-8")
        out = tmp_path / "out.html"

        cli.main([str(source), "-o", str(out)])

        result = out.read_text(encoding="utf-8")
        assert "<strong>Ada Lovelace</strong>" in result
        assert "/team/" not in result

    def test_flags_override_settings(
        self,
        tmp_path: Path,
        slack_thread_html: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("EXTRACT__AUTHOR_LINKS", "true")
        source = tmp_path / "thread.html"
        source.write_text(slack_thread_html, encoding="utf-8")
        out = tmp_path / "out.html"

        cli.main([str(source), "-o", str(out), "--no-author-links", "--emoji"])

        result = out.read_text(encoding="utf-8")
        assert "/team/" not in result
        assert 'alt=":party:"' in result

    def test_settings_supply_defaults(
        self,
        tmp_path: Path,
        slack_thread_html: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("EXTRACT__AUTHOR_LINKS", "true")
        source = tmp_path / "thread.html"
        source.write_text(slack_thread_html, encoding="utf-8")
        out = tmp_path / "out.html"

        cli.main([str(source), "-o", str(out)])

        assert "https://acme.slack.com/team/U012AB3CD" in out.read_text("utf-8")

    def test_json_from_stdin(
        self,
        slack_thread_html: str,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(slack_thread_html))

        cli.main(["--json"])

        messages = json.loads(capsys.readouterr().out)
        assert [m["author"]["name"] if m["author"] else None for m in messages] == [
            "Ada Lovelace",
            None,
            "Grace Hopper",
        ]
        assert messages[0]["timestamp"] == "2023-11-14T22:13:20.000Z"

    def test_missing_file_exits_with_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main([str(tmp_path / "nope.html")])
        assert excinfo.value.code == 1
        assert "cannot read" in capsys.readouterr().err

    def test_blank_input_gives_empty_transcript(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("  \n"))
        cli.main([])
        captured = capsys.readouterr()
        assert captured.out == "\n"
        assert "Error" not in captured.err

    def test_bad_log_level_is_reported(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("APP__LOG_LEVEL", "LOUD")
        with pytest.raises(SystemExit) as excinfo:
            cli.main([])
        assert excinfo.value.code == 1
        assert "unknown log level" in capsys.readouterr().err

    def test_processing_failure_is_reported(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        def broken(*args, **kwargs):
            raise ValueError("bad markup")

        monkeypatch.setattr(cli, "convert", broken)
        source = tmp_path / "thread.html"
        source.write_text("<p>x</p>", encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            cli.main([str(source)])
        assert excinfo.value.code == 1
        assert "Error processing HTML" in capsys.readouterr().err


class TestConvert:
    def test_html_output(self, slack_thread_html: str) -> None:
        result = cli.convert(slack_thread_html, ExtractConfig())
        assert result.count("<hr />") == 1

    def test_empty_message_list(self) -> None:
        assert cli.convert("<p>x</p>", ExtractConfig(), as_json=True) == "[]"
