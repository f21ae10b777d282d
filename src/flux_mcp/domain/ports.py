"""Port interfaces for dependency inversion.

Domain and application layers depend on these protocols; the
infrastructure layer provides the aiohttp-backed adapters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from flux_mcp.domain.models.generation import GenerationRequest, GenerationResult


class PredictionPort(Protocol):
    """Interface for the hosted generation service."""

    async def run(self, model_id: str, model_input: dict[str, Any]) -> Any:
        """Run a prediction to completion and return its raw output.

        The output is either a single URL or a list of URLs.
        """
        ...

    async def close(self) -> None: ...


class DownloadPort(Protocol):
    """Interface for fetching generated artifacts to local files."""

    async def download(self, url: str, destination: str) -> int:
        """Stream url to destination; returns bytes written."""
        ...

    async def close(self) -> None: ...


class GeneratorPort(Protocol):
    """Interface for the generation orchestrator used by flux_generate."""

    async def generate(self, request: GenerationRequest) -> GenerationResult: ...
