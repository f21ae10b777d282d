"""MCP stdio server for flux-mcp.

Advertises the registered tools and forwards every call to the
ToolExecutor. Tool failures come back as error-flagged results; an
unknown tool name raises, and the MCP SDK reports it as an error.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from flux_mcp.application.generation import GenerationService
from flux_mcp.application.tool_executor import ToolExecutor
from flux_mcp.domain.tools.base import ToolResult
from flux_mcp.domain.tools.factory import create_all_tools
from flux_mcp.infrastructure.clients.downloader import Downloader
from flux_mcp.infrastructure.clients.replicate_client import ReplicateClient
from flux_mcp.infrastructure.config import AppConfig, get_config
from flux_mcp.infrastructure.logging_setup import setup_logging

logger = logging.getLogger(__name__)

SERVER_NAME = "flux-mcp"


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.text)],
        isError=result.is_error,
    )


def create_server(executor: ToolExecutor) -> Server:
    """Wire the executor's tools into an MCP Server."""
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=schema["name"],
                description=schema["description"],
                inputSchema=schema["inputSchema"],
            )
            for schema in executor.schemas
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        result = await executor.execute(name, arguments)
        return to_call_tool_result(result)

    return server


def build_executor(config: AppConfig) -> tuple[ToolExecutor, ReplicateClient, Downloader]:
    """Build the service graph from configuration."""
    replicate = ReplicateClient(
        token_provider=config.replicate.resolve_api_token,
        base_url=config.replicate.base_url,
        timeout=config.replicate.timeout,
        poll_interval=config.replicate.poll_interval,
        max_inline_bytes=config.replicate.max_inline_file_bytes,
    )
    downloader = Downloader(
        cdn_domain=config.download.cdn_domain,
        timeout=config.download.timeout,
        chunk_size=config.download.chunk_size,
        max_redirects=config.download.max_redirects,
    )
    service = GenerationService(
        predictor=replicate,
        downloader=downloader,
        token_provider=config.replicate.resolve_api_token,
        temp_root=config.download.temp_root,
    )
    tools = create_all_tools(
        service,
        default_model=config.generation.default_model,
        default_output_format=config.generation.default_output_format,
    )
    return ToolExecutor(tools), replicate, downloader


async def serve(config: AppConfig) -> None:
    executor, replicate, downloader = build_executor(config)
    server = create_server(executor)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("FLUX MCP server running on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await replicate.close()
        await downloader.close()


def main() -> None:
    """Entry point."""
    config = get_config()
    setup_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_dir=config.logging.log_dir,
    )
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
