"""FLUX model catalog.

Static table of the Replicate-hosted FLUX models this server exposes,
with the input fields each model declares. Built once at import time
and read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class FieldType(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    FILE_OR_URL = "file_or_url"


@dataclass(frozen=True)
class InputField:
    type: FieldType
    required: bool = False


@dataclass(frozen=True)
class ModelDescriptor:
    """One supported model and the inputs it accepts."""
    id: str
    display_name: str
    category: str
    usage_notes: tuple[str, ...] = ()
    accepts_image: bool = False
    input_fields: Mapping[str, InputField] = field(default_factory=dict)

    def declares(self, field_name: str) -> bool:
        return field_name in self.input_fields

    @property
    def is_inpainting(self) -> bool:
        return self.category == "inpainting/outpainting"


DEFAULT_MODEL_ID = "black-forest-labs/flux-1.1-pro-ultra"

_PROMPT = InputField(FieldType.STRING, required=True)
_IMAGE = InputField(FieldType.FILE_OR_URL, required=True)
_SEED = InputField(FieldType.INTEGER)


def _fields(**fields: InputField) -> Mapping[str, InputField]:
    return MappingProxyType(dict(fields))


_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        id="black-forest-labs/flux-1.1-pro-ultra",
        display_name="FLUX1.1 Pro Ultra",
        category="text-to-image",
        usage_notes=(
            "Highest quality, up to ~4MP; 'raw' mode for realism.",
            "Use when you need best composition/large output.",
        ),
        input_fields=_fields(
            prompt=_PROMPT,
            raw=InputField(FieldType.BOOLEAN),
            aspect_ratio=InputField(FieldType.STRING),
            seed=_SEED,
            output_quality=InputField(FieldType.NUMBER),
            go_fast=InputField(FieldType.BOOLEAN),
        ),
    ),
    ModelDescriptor(
        id="black-forest-labs/flux-pro",
        display_name="FLUX1.1 Pro",
        category="text-to-image",
        usage_notes=(
            "Fast, reliable, commercial-grade default when Ultra not required.",
        ),
        input_fields=_fields(
            prompt=_PROMPT,
            aspect_ratio=InputField(FieldType.STRING),
            seed=_SEED,
        ),
    ),
    ModelDescriptor(
        id="black-forest-labs/flux-redux-dev",
        display_name="FLUX.1 Redux [dev]",
        category="image-variation",
        usage_notes=(
            "Variations/restyling while preserving key elements; mix image + text.",
        ),
        accepts_image=True,
        input_fields=_fields(
            image=_IMAGE,
            prompt=_PROMPT,
            strength=InputField(FieldType.NUMBER),
            seed=_SEED,
            num_outputs=InputField(FieldType.INTEGER),
        ),
    ),
    ModelDescriptor(
        id="black-forest-labs/flux-fill-pro",
        display_name="FLUX.1 Fill [pro]",
        category="inpainting/outpainting",
        usage_notes=(
            "Professional in/outpainting; provide mask for areas to change.",
        ),
        accepts_image=True,
        input_fields=_fields(
            image=_IMAGE,
            mask=InputField(FieldType.FILE_OR_URL),
            prompt=_PROMPT,
            num_inference_steps=InputField(FieldType.INTEGER),
            guidance=InputField(FieldType.NUMBER),
            seed=_SEED,
        ),
    ),
    ModelDescriptor(
        id="black-forest-labs/flux-depth-dev",
        display_name="FLUX.1 Depth [dev]",
        category="depth-guided editing",
        usage_notes=(
            "Structure-preserving edits/style transfer using depth; supply an image.",
        ),
        accepts_image=True,
        input_fields=_fields(image=_IMAGE, prompt=_PROMPT, seed=_SEED),
    ),
    ModelDescriptor(
        id="black-forest-labs/flux-canny-pro",
        display_name="FLUX.1 Canny [pro]",
        category="edge-guided generation",
        usage_notes=(
            "Control structure/composition with edges; "
            "ideal for sketches/wireframes → detailed images.",
        ),
        accepts_image=True,
        input_fields=_fields(image=_IMAGE, prompt=_PROMPT, seed=_SEED),
    ),
)

MODEL_CATALOG: Mapping[str, ModelDescriptor] = MappingProxyType(
    {m.id: m for m in _MODELS}
)


def lookup(model_id: str) -> ModelDescriptor | None:
    """Return the descriptor for model_id, or None if it is not in the catalog."""
    return MODEL_CATALOG.get(model_id)


def list_all() -> list[ModelDescriptor]:
    """All descriptors in declaration order."""
    return list(MODEL_CATALOG.values())


def model_ids() -> list[str]:
    return list(MODEL_CATALOG.keys())
