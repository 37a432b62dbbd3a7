"""Tests for the ghlines command line."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from ghlines import __version__
from ghlines.cli import cli
from ghlines.core.errors import NotFound
from ghlines.core.models import DisplayEntry, HostKind, LinkOutcome, ParsedLink

GOOD = LinkOutcome(
    index=0,
    candidate="https://github.com/octo/demo/blob/main/app.py#L3-L4",
    link=ParsedLink(HostKind.GITHUB, "octo", "demo", "main", "app.py", 3, 4),
    entry=DisplayEntry("py", "def handler():\n    return 42"),
    lines=2,
)
BAD = LinkOutcome(
    index=1,
    candidate="https://github.com/octo/demo/blob/main/gone.py#L1",
    error=NotFound("HTTP 404"),
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the developer's environment and .env out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GHLINES_TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.setenv("GHLINES_LOG_FILE", "")


def _invoke(*args, outcomes=(), input=None):
    runner = CliRunner()
    with patch("ghlines.cli.cmd_resolve._resolve", new=AsyncMock(return_value=list(outcomes))) as mock:
        result = runner.invoke(cli, list(args), input=input)
    return result, mock


class TestGroup:

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_help(self):
        result = CliRunner().invoke(cli, [])
        assert result.exit_code == 0
        assert "resolve" in result.output
        assert "start" in result.output


class TestResolve:
    """Test the resolve command."""

    def test_json_output(self):
        result, _ = _invoke("resolve", "--json", "some text", outcomes=[GOOD, BAD])
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "msgList": [{"extension": "py", "toDisplay": "def handler():\n    return 42"}],
            "totalLines": 2,
        }

    def test_passes_text_through(self):
        _, mock = _invoke("resolve", "hello world")
        assert mock.await_args[0][1] == "hello world"

    def test_reads_stdin(self):
        _, mock = _invoke("resolve", "-", input="piped text\n")
        assert mock.await_args[0][1] == "piped text\n"

    def test_no_links(self):
        result, _ = _invoke("resolve", "nothing here")
        assert result.exit_code == 0
        assert "No code links found." in result.output

    def test_rendered_snippets(self):
        result, _ = _invoke("resolve", "text", outcomes=[GOOD, BAD])
        assert result.exit_code == 0
        assert "octo/demo app.py" in result.output
        assert "return 42" in result.output
        assert "Total lines:" in result.output
        assert "Unresolved" not in result.output

    def test_verbose_lists_failures(self):
        result, _ = _invoke("resolve", "-v", "text", outcomes=[GOOD, BAD])
        assert "Unresolved links" in result.output
        assert "404" in result.output


class TestStart:
    """Test the start command."""

    def test_requires_token(self):
        with patch("ghlines.main.run", new=AsyncMock()) as run, patch("ghlines.main.setup_logging"):
            result = CliRunner().invoke(cli, ["start"])
        assert result.exit_code == 1
        assert "No Telegram bot token" in result.output
        run.assert_not_called()

    def test_runs_bot(self, monkeypatch):
        monkeypatch.setenv("GHLINES_TELEGRAM_BOT_TOKEN", "123:abc")
        with patch("ghlines.main.run", new=AsyncMock()) as run, patch("ghlines.main.setup_logging"):
            result = CliRunner().invoke(cli, ["start"])
        assert result.exit_code == 0
        settings = run.await_args[0][0]
        assert settings.telegram_bot_token == "123:abc"
