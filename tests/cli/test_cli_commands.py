"""Tests for the ``mcpk8s`` CLI."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from mcpk8s import __version__
from mcpk8s.cli import main


class TestMain:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "serve" in result.output
        assert "tools" in result.output


class TestToolsCommand:
    def test_table(self) -> None:
        result = CliRunner().invoke(main, ["tools"])
        assert result.exit_code == 0
        assert "Registered Tools" in result.output
        assert "echo" in result.output

    def test_json(self) -> None:
        result = CliRunner().invoke(main, ["tools", "--json"])
        assert result.exit_code == 0
        tools = json.loads(result.output)
        names = [t["name"] for t in tools]
        assert names[0] == "echo"
        assert "resources_apply" in names
        assert "inputSchema" in tools[1]


class TestServeCommand:
    def test_runs_server(self) -> None:
        with patch("mcpk8s.cli_commands.serve._serve", new=AsyncMock()) as serve:
            result = CliRunner().invoke(main, ["serve", "--log-level", "debug"])
        assert result.exit_code == 0
        serve.assert_awaited_once()

    def test_configures_otlp(self) -> None:
        with (
            patch("mcpk8s.cli_commands.serve._serve", new=AsyncMock()),
            patch("mcpk8s.utils.telemetry.configure_telemetry") as configure,
        ):
            result = CliRunner().invoke(main, ["serve", "--otlp-endpoint", "localhost:4317"])
        assert result.exit_code == 0
        configure.assert_called_once_with(export_to_console=False, otlp_endpoint="localhost:4317")

    def test_write_failure_exits_nonzero(self) -> None:
        broken = AsyncMock(side_effect=BrokenPipeError("stdout closed"))
        with patch("mcpk8s.cli_commands.serve._serve", new=broken):
            result = CliRunner().invoke(main, ["serve"])
        assert result.exit_code == 1

    def test_rejects_unknown_log_level(self) -> None:
        result = CliRunner().invoke(main, ["serve", "--log-level", "loud"])
        assert result.exit_code != 0

    def test_malformed_frame_exits_nonzero(self) -> None:
        from mcpk8s.protocol.errors import FramingError

        broken = AsyncMock(side_effect=FramingError("invalid content-length: b'x'"))
        with patch("mcpk8s.cli_commands.serve._serve", new=broken):
            result = CliRunner().invoke(main, ["serve"])
        assert result.exit_code == 1
