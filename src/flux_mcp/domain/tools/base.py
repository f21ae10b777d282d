"""Base tool interface.

Every tool the server exposes implements this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolInfo:
    """Tool metadata advertised to the calling agent."""
    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Result of a tool execution."""
    text: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    is_error: bool = False

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(text=f"Error: {message}", is_error=True)

    @classmethod
    def success(cls, text: str, **kwargs: Any) -> ToolResult:
        return cls(text=text, **kwargs)


class Tool(ABC):
    """Abstract base class for all tools.

    The agent sees info() to decide when to call a tool,
    and run() executes the actual operation.
    """

    @abstractmethod
    def info(self) -> ToolInfo:
        """Return tool metadata (name, description, parameter schema)."""
        ...

    @abstractmethod
    async def run(self, params: dict[str, Any]) -> ToolResult:
        """Execute the tool with given parameters.

        Args:
            params: Arguments from the agent's tool call

        Returns:
            ToolResult with text output; failures are reported via is_error
        """
        ...

    def to_schema(self) -> dict[str, Any]:
        """Convert to an MCP tool listing entry."""
        info = self.info()
        return {
            "name": info.name,
            "description": info.description,
            "inputSchema": info.parameters,
        }
