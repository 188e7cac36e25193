"""Tests for voiceslot CLI commands."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest
from typer.testing import CliRunner

from voiceslot import __version__
from voiceslot.cli import app

runner = CliRunner()

STATS = {
    "queue_size": 4,
    "in_flight": 2,
    "remote_active": 1,
    "concurrency_limit": 5,
    "available_slots": 2,
    "dead_lettered": 0,
}


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestStatsCommand:
    """Tests for ``voiceslot stats`` against a running service."""

    def _response(self) -> MagicMock:
        response = MagicMock()
        response.json.return_value = STATS
        return response

    def test_renders_table(self) -> None:
        with patch("voiceslot.cli.commands.status.httpx.get", return_value=self._response()) as get:
            result = runner.invoke(app, ["stats", "--url", "http://localhost:4000/"])

        assert result.exit_code == 0
        assert "Scheduler Stats" in result.stdout
        assert "Queue size" in result.stdout
        get.assert_called_once_with("http://localhost:4000/stats", timeout=5.0)

    def test_json_output(self) -> None:
        with patch("voiceslot.cli.commands.status.httpx.get", return_value=self._response()):
            result = runner.invoke(app, ["stats", "--json"])

        assert result.exit_code == 0
        assert '"queue_size": 4' in result.stdout

    def test_unreachable_service(self) -> None:
        with patch(
            "voiceslot.cli.commands.status.httpx.get",
            side_effect=httpx.ConnectError("connection refused"),
        ):
            result = runner.invoke(app, ["stats"])

        assert result.exit_code == 1
        assert "Could not read" in result.stdout


class TestShowConfigCommand:
    def test_api_key_redacted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ELEVENLABS_API_KEY", "sk-secret-xyz")
        monkeypatch.setenv("ELEVENLABS_CONCURRENCY_LIMIT", "8")

        result = runner.invoke(app, ["show-config"])

        assert result.exit_code == 0
        assert "Resolved Configuration" in result.stdout
        assert "REDACTED" in result.stdout
        assert "sk-secret-xyz" not in result.stdout

    def test_lists_missing_settings(self) -> None:
        result = runner.invoke(app, ["show-config"])

        assert result.exit_code == 0
        assert "Missing:" in result.stdout
        assert "ELEVENLABS_START_CALL_URL" in result.stdout

    def test_invalid_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("port: [unclosed\n")

        result = runner.invoke(app, ["show-config", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout


class TestServeCommand:
    def test_runs_uvicorn_with_overrides(self) -> None:
        mock_uvicorn = MagicMock()
        mock_create_app = MagicMock(return_value=MagicMock())

        with (
            patch.dict(sys.modules, {"uvicorn": mock_uvicorn}),
            patch("voiceslot.server.create_app", mock_create_app),
            patch("voiceslot.core.logging.configure_logging") as mock_logging,
        ):
            result = runner.invoke(
                app, ["serve", "--host", "127.0.0.1", "--port", "9000", "--log-level", "DEBUG"],
            )

        assert result.exit_code == 0, result.output
        assert "Voice Slot Scheduler" in result.stdout

        config = mock_create_app.call_args.args[0]
        assert config.port == 9000
        assert config.log_level == "debug"
        mock_logging.assert_called_once()
        assert mock_logging.call_args.kwargs["level"] == "DEBUG"

        mock_uvicorn.run.assert_called_once()
        kwargs = mock_uvicorn.run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9000

    def test_log_file_enables_file_output(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        log_file = tmp_path / "scheduler.log"
        monkeypatch.setenv("LOG_FILE", str(log_file))

        with (
            patch.dict(sys.modules, {"uvicorn": MagicMock()}),
            patch("voiceslot.server.create_app", MagicMock(return_value=MagicMock())),
            patch("voiceslot.core.logging.configure_logging") as mock_logging,
        ):
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 0, result.output
        kwargs = mock_logging.call_args.kwargs
        assert kwargs["format"] == "both"
        assert kwargs["file_path"] == log_file

    def test_invalid_port_rejected(self) -> None:
        with (
            patch.dict(sys.modules, {"uvicorn": MagicMock()}),
            patch("voiceslot.server.create_app") as mock_create_app,
        ):
            result = runner.invoke(app, ["serve", "--port", "70000"])

        assert result.exit_code == 1
        assert "Invalid option" in result.stdout
        mock_create_app.assert_not_called()

    def test_missing_uvicorn_exits_1(self) -> None:
        import builtins

        real_import = builtins.__import__

        def mock_import(name: str, *args, **kwargs):  # type: ignore[no-untyped-def]
            if name == "uvicorn":
                raise ImportError("No module named 'uvicorn'")
            return real_import(name, *args, **kwargs)

        with patch("builtins.__import__", side_effect=mock_import):
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1
        assert "uvicorn" in result.output.lower()
