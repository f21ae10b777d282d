"""Tool factory — creates the tools this server exposes."""

from __future__ import annotations

from flux_mcp.domain.catalog import DEFAULT_MODEL_ID
from flux_mcp.domain.models.generation import DEFAULT_OUTPUT_FORMAT
from flux_mcp.domain.ports import GeneratorPort
from flux_mcp.domain.tools.base import Tool
from flux_mcp.domain.tools.generate_tool import FluxGenerateTool
from flux_mcp.domain.tools.models_tool import FluxModelsTool


def create_all_tools(
    generator: GeneratorPort,
    default_model: str = DEFAULT_MODEL_ID,
    default_output_format: str = DEFAULT_OUTPUT_FORMAT,
) -> list[Tool]:
    """Catalog listing first, then generation."""
    return [
        FluxModelsTool(),
        FluxGenerateTool(
            generator,
            default_model=default_model,
            default_output_format=default_output_format,
        ),
    ]
