"""Tool registration, lookup, and execution.

Routes a tool call to the registered tool by name. Names outside the
registered set are rejected with UnknownToolError.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from flux_mcp.domain.errors import UnknownToolError
from flux_mcp.domain.tools.base import Tool, ToolResult

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Manages tool registration and execution."""

    def __init__(self, tools: list[Tool]) -> None:
        self._tools: dict[str, Tool] = {t.info().name: t for t in tools}
        self.schemas: list[dict[str, Any]] = [t.to_schema() for t in tools]

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get(self, tool_name: str) -> Tool | None:
        """Look up a tool by name."""
        return self._tools.get(tool_name)

    async def execute(self, tool_name: str, params: dict[str, Any] | None) -> ToolResult:
        """Execute a tool by name.

        Raises:
            UnknownToolError: if no tool is registered under tool_name.
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            logger.warning("Rejected unknown tool: %s", tool_name)
            raise UnknownToolError(tool_name)

        started = time.monotonic()
        result = await tool.run(params or {})
        logger.info(
            "Tool %s completed in %.1fs: %s",
            tool_name,
            time.monotonic() - started,
            "error" if result.is_error else "ok",
        )
        return result
