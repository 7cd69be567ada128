"""Tests for the command line interface."""

import pytest
from click.testing import CliRunner

from chat_commands.cli import build_router, cli
from chat_commands.config import AppConfig


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return CliRunner()


class TestCLI:
    def test_run_help(self, runner):
        result = runner.invoke(cli, ["--no-color", "run", "/help"])

        assert result.exit_code == 0
        assert "Available Commands" in result.output

    def test_run_unknown_command_exits_nonzero(self, runner):
        result = runner.invoke(cli, ["--no-color", "run", "/nosuchcommand"])

        assert result.exit_code == 1
        assert "Command Not Found" in result.output

    def test_commands_lists_builtins(self, runner):
        result = runner.invoke(cli, ["commands"])

        assert result.exit_code == 0
        assert "/help" in result.output
        assert "/errors" in result.output

    def test_interactive_session(self, runner):
        result = runner.invoke(cli, ["--no-color", "interactive"], input="/help\nexit\n")

        assert result.exit_code == 0
        assert "Available Commands" in result.output
        assert "Goodbye!" in result.output

    def test_interactive_ends_on_eof(self, runner):
        result = runner.invoke(cli, ["interactive"], input="")

        assert result.exit_code == 0
        assert "Goodbye!" in result.output

    def test_invalid_config_value(self, runner, monkeypatch):
        monkeypatch.setenv("CHAT_COMMANDS_MAX_RETRIES", "99")

        result = runner.invoke(cli, ["commands"])

        assert result.exit_code != 0
        assert "Failed to load configuration" in result.output


class TestBuildRouter:
    def test_wires_configuration(self):
        config = AppConfig()
        config.router.max_tips = 1
        config.recovery.max_sessions = 7

        router = build_router(config)

        assert router.max_tips == 1
        assert router.recovery_engine.max_sessions == 7
        assert router.recovery_engine.error_handler is router.error_handler
        assert router.error_handler.history_size == 100
