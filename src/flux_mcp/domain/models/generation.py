"""Generation request and result types."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from flux_mcp.domain.catalog import DEFAULT_MODEL_ID
from flux_mcp.domain.errors import InvalidArgumentError

OUTPUT_FORMATS = ("png", "jpeg", "webp")
DEFAULT_OUTPUT_FORMAT = "png"

# Forwarded upstream only when the selected model declares them
OPTIONAL_PARAMS = (
    "aspect_ratio",
    "seed",
    "raw",
    "num_outputs",
    "output_quality",
    "go_fast",
    "strength",
    "num_inference_steps",
    "guidance",
)


@dataclass
class GenerationRequest:
    """Arguments of a single flux_generate call."""
    prompt: str
    download_path: str
    model: str = DEFAULT_MODEL_ID
    image_path: str | None = None
    mask_path: str | None = None
    output_format: str = DEFAULT_OUTPUT_FORMAT
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_arguments(
        cls,
        args: dict[str, Any],
        default_model: str = DEFAULT_MODEL_ID,
        default_output_format: str = DEFAULT_OUTPUT_FORMAT,
    ) -> GenerationRequest:
        """Build a request from raw tool arguments.

        Names outside the known argument set are dropped here; options are
        filtered again against the model's declared inputs later.
        """
        prompt = args.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidArgumentError("prompt is required")

        download_path = args.get("download_path")
        if not isinstance(download_path, str) or not download_path.strip():
            raise InvalidArgumentError("download_path is required")

        output_format = args.get("output_format") or default_output_format
        if output_format not in OUTPUT_FORMATS:
            raise InvalidArgumentError(
                f"output_format must be one of: {', '.join(OUTPUT_FORMATS)}"
            )

        options = {
            name: args[name]
            for name in OPTIONAL_PARAMS
            if args.get(name) is not None
        }

        return cls(
            prompt=prompt,
            download_path=download_path,
            model=args.get("model") or default_model,
            image_path=args.get("image_path") or None,
            mask_path=args.get("mask_path") or None,
            output_format=output_format,
            options=options,
        )


@dataclass
class GenerationResult:
    model: str
    saved: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"model": self.model, "saved": self.saved, "urls": self.urls}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def file_extension(output_format: str) -> str:
    """File extension for an output format ("jpeg" is saved as .jpg)."""
    if output_format == "jpeg":
        return ".jpg"
    return f".{output_format}"
