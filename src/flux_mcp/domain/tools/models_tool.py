"""flux_models tool — list the model catalog."""

from __future__ import annotations

import json
from typing import Any

from flux_mcp.domain.catalog import ModelDescriptor, list_all
from flux_mcp.domain.tools.base import Tool, ToolInfo, ToolResult


def summarize(meta: ModelDescriptor) -> dict[str, Any]:
    """Listing view of a descriptor: field names only, no types."""
    return {
        "model": meta.id,
        "display": meta.display_name,
        "kind": meta.category,
        "accepts_image": meta.accepts_image,
        "notes": list(meta.usage_notes),
        "key_inputs": list(meta.input_fields),
    }


class FluxModelsTool(Tool):
    """List supported FLUX models with usage notes and key inputs."""

    def info(self) -> ToolInfo:
        return ToolInfo(
            name="flux_models",
            description="List supported FLUX models with usage notes and key inputs",
            parameters={"type": "object", "properties": {}},
        )

    async def run(self, params: dict[str, Any]) -> ToolResult:
        models = [summarize(m) for m in list_all()]
        return ToolResult.success(json.dumps(models, indent=2), data={"models": models})
