"""Generation orchestration.

Validates a request against the model catalog, builds the upstream
payload, runs the prediction, and downloads every output artifact in
order into the caller's directory.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Callable

from flux_mcp.domain.catalog import ModelDescriptor, lookup
from flux_mcp.domain.errors import (
    ConfigurationError,
    MissingImageError,
    UnknownModelError,
    UpstreamError,
)
from flux_mcp.domain.models.generation import (
    OPTIONAL_PARAMS,
    GenerationRequest,
    GenerationResult,
    file_extension,
)
from flux_mcp.domain.ports import DownloadPort, PredictionPort
from flux_mcp.domain.security import (
    TEMP_ROOT,
    default_allowed_roots,
    reject_insecure_url,
    validate_download_path,
)

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_model_input(meta: ModelDescriptor, request: GenerationRequest) -> dict[str, Any]:
    """Assemble the upstream payload for a request.

    Optional fields are copied only when the model declares them, so a
    caller cannot inject inputs the model does not accept.
    """
    model_input: dict[str, Any] = {
        "prompt": request.prompt,
        "output_format": request.output_format,
    }

    for param in OPTIONAL_PARAMS:
        value = request.options.get(param)
        if value is not None and meta.declares(param):
            model_input[param] = value

    if meta.accepts_image:
        if not request.image_path:
            raise MissingImageError(meta.id)
        model_input["image"] = reject_insecure_url(request.image_path)

    if meta.is_inpainting and request.mask_path:
        model_input["mask"] = reject_insecure_url(request.mask_path)

    return model_input


def base_filename(display_name: str, now: datetime) -> str:
    """e.g. "flux11proultra_2026-10-18T09-15-02"."""
    slug = _NON_ALNUM_RE.sub("", display_name).lower()
    return f"{slug}_{now.strftime('%Y-%m-%dT%H-%M-%S')}"


def normalize_outputs(output: Any) -> list[str]:
    """Promote a single output to a one-element list and stringify each entry."""
    if output is None:
        raise UpstreamError("Prediction returned no output")
    items = output if isinstance(output, (list, tuple)) else [output]
    return [item if isinstance(item, str) else str(item) for item in items]


class GenerationService:
    """Runs one flux_generate request end to end."""

    def __init__(
        self,
        predictor: PredictionPort,
        downloader: DownloadPort,
        token_provider: Callable[[], str],
        temp_root: str = TEMP_ROOT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._predictor = predictor
        self._downloader = downloader
        self._token_provider = token_provider
        self._temp_root = temp_root
        self._clock = clock

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        if not self._token_provider():
            raise ConfigurationError("REPLICATE_API_TOKEN environment variable is not set")

        meta = lookup(request.model)
        if meta is None:
            raise UnknownModelError(request.model)

        model_input = build_model_input(meta, request)

        logger.info("Running %s (%s)", meta.id, ", ".join(sorted(model_input)))
        output = await self._predictor.run(meta.id, model_input)

        download_dir = validate_download_path(
            request.download_path, default_allowed_roots(self._temp_root)
        )
        os.makedirs(download_dir, exist_ok=True)

        base = base_filename(meta.display_name, self._clock())
        ext = file_extension(request.output_format)
        urls = normalize_outputs(output)

        result = GenerationResult(model=meta.id)
        for i, url in enumerate(urls):
            filepath = os.path.join(download_dir, f"{base}_{i + 1}{ext}")
            await self._downloader.download(url, filepath)
            result.saved.append(filepath)
            result.urls.append(url)

        logger.info("Saved %d file(s) to %s", len(result.saved), download_dir)
        return result
