"""flux_generate tool — run a FLUX model and save the outputs locally.

Errors never leave this tool as exceptions. The full error goes to the
log; the caller only sees a message chosen by error kind.
"""

from __future__ import annotations

import logging
from typing import Any

from flux_mcp.domain.catalog import DEFAULT_MODEL_ID, model_ids
from flux_mcp.domain.errors import ErrorKind, FluxError
from flux_mcp.domain.models.generation import (
    DEFAULT_OUTPUT_FORMAT,
    OUTPUT_FORMATS,
    GenerationRequest,
)
from flux_mcp.domain.ports import GeneratorPort
from flux_mcp.domain.tools.base import Tool, ToolInfo, ToolResult

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred while generating the image."

_SAFE_MESSAGES: dict[ErrorKind, str | None] = {
    ErrorKind.CONFIGURATION: "API token is not configured. Please set REPLICATE_API_TOKEN.",
    # None = the error's own message is safe to show
    ErrorKind.INVALID_ARGUMENT: None,
    ErrorKind.UNKNOWN_MODEL: None,
    ErrorKind.MISSING_IMAGE: None,
    ErrorKind.UNSAFE_PATH: (
        "Invalid download path. Path must be within the home directory, "
        "the temp directory, or the project downloads folder."
    ),
    ErrorKind.INSECURE_URL: "Only HTTPS URLs are allowed for security reasons.",
    ErrorKind.CONTENT_POLICY: "Content was flagged by safety filters. Please try a different prompt.",
    ErrorKind.UNSAFE_URL: "Invalid image source. Only Replicate CDN URLs are allowed.",
    ErrorKind.UNSAFE_REDIRECT: "Download aborted: redirect to an untrusted domain was detected.",
}


def sanitize_error(error: BaseException) -> str:
    """Map an error to the message the caller is allowed to see."""
    if not isinstance(error, FluxError) or error.kind not in _SAFE_MESSAGES:
        return GENERIC_ERROR_MESSAGE
    message = _SAFE_MESSAGES[error.kind]
    return error.message if message is None else message


class FluxGenerateTool(Tool):
    """Generate an image with a FLUX model via Replicate."""

    def __init__(
        self,
        generator: GeneratorPort,
        default_model: str = DEFAULT_MODEL_ID,
        default_output_format: str = DEFAULT_OUTPUT_FORMAT,
    ) -> None:
        self._generator = generator
        self._default_model = default_model
        self._default_output_format = default_output_format

    def info(self) -> ToolInfo:
        return ToolInfo(
            name="flux_generate",
            description=(
                "Generate an image with a FLUX model via Replicate "
                "and save files to download_path"
            ),
            parameters={
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "Text prompt describing the image",
                    },
                    "download_path": {
                        "type": "string",
                        "description": "Directory to save generated images",
                    },
                    "model": {
                        "type": "string",
                        "description": "FLUX model to use",
                        "enum": model_ids(),
                        "default": self._default_model,
                    },
                    "image_path": {
                        "type": "string",
                        "description": "Local path or URL to input image (for image-accepting models)",
                    },
                    "mask_path": {
                        "type": "string",
                        "description": "Local path or URL to mask for inpainting (Fill model)",
                    },
                    "aspect_ratio": {
                        "type": "string",
                        "description": "Aspect ratio (e.g., '1:1', '16:9', '3:4')",
                    },
                    "seed": {"type": "number", "description": "Random seed for reproducibility"},
                    "raw": {"type": "boolean", "description": "Enable raw realism mode (Ultra model)"},
                    "num_outputs": {"type": "number", "description": "Number of images to generate"},
                    "output_quality": {"type": "number", "description": "Quality setting (model-dependent)"},
                    "go_fast": {"type": "boolean", "description": "Speed vs quality tradeoff"},
                    "strength": {"type": "number", "description": "Variation strength (Redux model)"},
                    "num_inference_steps": {"type": "number", "description": "Inference steps (Fill model)"},
                    "guidance": {"type": "number", "description": "Guidance scale (Fill model)"},
                    "output_format": {
                        "type": "string",
                        "description": "Output image format (png, jpeg, or webp)",
                        "enum": list(OUTPUT_FORMATS),
                        "default": self._default_output_format,
                    },
                },
                "required": ["prompt", "download_path"],
            },
        )

    async def run(self, params: dict[str, Any]) -> ToolResult:
        try:
            request = GenerationRequest.from_arguments(
                params,
                default_model=self._default_model,
                default_output_format=self._default_output_format,
            )
            result = await self._generator.generate(request)
        except Exception as e:
            logger.exception("flux_generate failed")
            return ToolResult.error(sanitize_error(e))

        return ToolResult.success(result.to_json(), data=result.to_dict())
