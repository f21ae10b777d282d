"""Tests for the MCP server wiring, process entry point and logging setup."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from mcp import types

from flux_mcp.application.tool_executor import ToolExecutor
from flux_mcp.domain.tools.factory import create_all_tools
from flux_mcp.infrastructure.clients.downloader import Downloader
from flux_mcp.infrastructure.clients.replicate_client import ReplicateClient
from flux_mcp.infrastructure.config import AppConfig
from flux_mcp.infrastructure.logging_setup import setup_logging
from flux_mcp.interface import server as server_module
from flux_mcp.interface.server import create_server, main, serve


@pytest.fixture
def mcp_server():
    return create_server(ToolExecutor(create_all_tools(AsyncMock())))


def call_request(name: str, arguments: dict | None = None) -> types.CallToolRequest:
    return types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments or {}),
    )


def failing_transport(*args, **kwargs):
    raise OSError("stdio transport unavailable")


# ---------------------------------------------------------------------------
# Request handlers
# ---------------------------------------------------------------------------

class TestRequestHandlers:
    async def test_list_tools(self, mcp_server):
        handler = mcp_server.request_handlers[types.ListToolsRequest]
        result = await handler(types.ListToolsRequest(method="tools/list"))
        tools = result.root.tools
        assert [t.name for t in tools] == ["flux_models", "flux_generate"]
        assert tools[1].inputSchema["required"] == ["prompt", "download_path"]

    async def test_call_flux_models(self, mcp_server):
        handler = mcp_server.request_handlers[types.CallToolRequest]
        result = (await handler(call_request("flux_models"))).root
        assert result.isError is False
        models = json.loads(result.content[0].text)
        assert len(models) == 6

    async def test_call_unknown_tool_is_error(self, mcp_server):
        handler = mcp_server.request_handlers[types.CallToolRequest]
        result = (await handler(call_request("flux_delete"))).root
        assert result.isError is True
        assert "Unknown tool: flux_delete" in result.content[0].text

    async def test_call_flux_generate_failure_is_error_result(self):
        generator = AsyncMock()
        generator.generate.side_effect = RuntimeError("internal detail")
        mcp_server = create_server(ToolExecutor(create_all_tools(generator)))
        handler = mcp_server.request_handlers[types.CallToolRequest]

        result = (await handler(
            call_request("flux_generate", {"prompt": "a cat", "download_path": "/tmp/out"})
        )).root

        assert result.isError is True
        assert result.content[0].text == "Error: An error occurred while generating the image."


# ---------------------------------------------------------------------------
# Process lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    async def test_serve_closes_clients_on_transport_failure(self, monkeypatch):
        replicate_close = AsyncMock()
        downloader_close = AsyncMock()
        monkeypatch.setattr(server_module, "stdio_server", failing_transport)
        monkeypatch.setattr(ReplicateClient, "close", replicate_close)
        monkeypatch.setattr(Downloader, "close", downloader_close)

        with pytest.raises(OSError):
            await serve(AppConfig())

        replicate_close.assert_awaited_once()
        downloader_close.assert_awaited_once()

    def test_main_exits_with_status_1_on_fatal_error(self, monkeypatch, caplog):
        configure_logging = MagicMock()
        monkeypatch.setattr(server_module, "get_config", AppConfig)
        monkeypatch.setattr(server_module, "setup_logging", configure_logging)
        monkeypatch.setattr(server_module, "stdio_server", failing_transport)

        with caplog.at_level(logging.ERROR), pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "Fatal error" in caplog.text
        configure_logging.assert_called_once_with(level="INFO", fmt="console", log_dir="")


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.mark.usefixtures("restore_logging")
class TestSetupLogging:
    def test_console_output_goes_to_stderr(self, capsys):
        setup_logging(level="INFO", fmt="console")
        logging.getLogger("flux_mcp.tests").info("server starting")
        structlog.get_logger("flux_mcp.tests").info("structured event", prediction="p1")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "server starting" in captured.err
        assert "structured event" in captured.err

    def test_json_format_on_stderr(self, capsys):
        setup_logging(level="INFO", fmt="json")
        logging.getLogger("flux_mcp.tests").warning("download retried")

        captured = capsys.readouterr()
        assert captured.out == ""
        records = [json.loads(line) for line in captured.err.splitlines() if line.strip()]
        assert any(r["event"] == "download retried" and r["level"] == "warning" for r in records)

    def test_level_filters_records(self, capsys):
        setup_logging(level="WARNING")
        logging.getLogger("flux_mcp.tests").info("too chatty")
        assert "too chatty" not in capsys.readouterr().err

    def test_log_dir_writes_json_file(self, capsys, tmp_path):
        log_dir = tmp_path / "logs"
        setup_logging(level="DEBUG", log_dir=str(log_dir))
        try:
            raise ValueError("boom")
        except ValueError:
            logging.getLogger("flux_mcp.tests").exception("generation failed")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert capsys.readouterr().out == ""
        lines = (log_dir / "flux-mcp.log").read_text(encoding="utf-8").splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "generation failed"
        assert record["level"] == "error"
        assert "ValueError: boom" in record["exception"]
