"""Replicate HTTP client — implements PredictionPort.

Creates a prediction against the official-model endpoint with
"Prefer: wait" and polls it until it reaches a terminal status.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Any, Callable

import aiohttp

from flux_mcp.domain.errors import (
    ConfigurationError,
    ContentPolicyError,
    InvalidArgumentError,
    UpstreamError,
)
from flux_mcp.domain.security import is_remote

logger = logging.getLogger(__name__)

_USER_AGENT = "flux-mcp/1.0"
_TERMINAL_STATUSES = frozenset({"succeeded", "failed", "canceled"})
_KNOWN_STATUSES = _TERMINAL_STATUSES | {"starting", "processing"}
# Inputs that may be given as a local file path
_FILE_INPUTS = ("image", "mask")
# Replicate only accepts data URIs for small files
MAX_INLINE_FILE_BYTES = 10 * 1024 * 1024


def encode_file_input(value: str, max_bytes: int = MAX_INLINE_FILE_BYTES) -> str:
    """Return URLs unchanged; read a local file into a base64 data URI.

    Only regular files up to max_bytes are read, so FIFOs, devices and
    directories are rejected before anything is opened.
    """
    if is_remote(value):
        return value
    path = Path(value).expanduser()
    if not path.is_file():
        raise InvalidArgumentError(f"Image file not found or not a regular file: {value}")
    size = path.stat().st_size
    if size > max_bytes:
        raise InvalidArgumentError(
            f"Image file is too large to send inline ({size} bytes, limit {max_bytes})"
        )
    with path.open("rb") as fh:
        data = fh.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise InvalidArgumentError(f"Image file is too large to send inline (limit {max_bytes})")
    mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _is_content_policy_error(error: Any) -> bool:
    return "nsfw" in str(error or "").lower()


class ReplicateClient:
    """PredictionPort implementation using aiohttp."""

    def __init__(
        self,
        token_provider: Callable[[], str],
        base_url: str = "https://api.replicate.com",
        timeout: int = 120,
        poll_interval: float = 1.0,
        max_inline_bytes: int = MAX_INLINE_FILE_BYTES,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._poll_interval = poll_interval
        self._max_inline_bytes = max_inline_bytes
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": _USER_AGENT},
                timeout=self._timeout,
            )
        return self._session

    def _headers(self) -> dict[str, str]:
        token = self._token_provider()
        if not token:
            raise ConfigurationError("REPLICATE_API_TOKEN environment variable is not set")
        return {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        session = await self._get_session()
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            async with session.request(method, url, headers=headers, **kwargs) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise UpstreamError(f"Replicate API error {resp.status}: {body[:200]}")
                payload = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamError(f"Replicate request failed: {e}") from e
        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected Replicate response: {str(payload)[:200]}")
        return payload

    async def create_prediction(self, model_id: str, model_input: dict[str, Any]) -> dict[str, Any]:
        """Start a prediction on an official model ("owner/name")."""
        url = f"{self.base_url}/v1/models/{model_id}/predictions"
        prediction = await self._request(
            "POST", url, json={"input": model_input}, headers={"Prefer": "wait"},
        )
        logger.info("Created prediction %s (%s)", prediction.get("id", "unknown"), prediction.get("status"))
        return prediction

    async def get_prediction(self, prediction: dict[str, Any]) -> dict[str, Any]:
        url = (prediction.get("urls") or {}).get("get")
        if not url:
            if not prediction.get("id"):
                raise UpstreamError("Replicate prediction has neither a polling URL nor an id")
            url = f"{self.base_url}/v1/predictions/{prediction['id']}"
        return await self._request("GET", url)

    async def wait(self, prediction: dict[str, Any]) -> dict[str, Any]:
        """Poll until the prediction reaches a terminal status.

        Raises:
            UpstreamError: the payload carries a missing or unknown status.
        """
        while True:
            status = prediction.get("status")
            if status not in _KNOWN_STATUSES:
                raise UpstreamError(f"Unexpected prediction status: {status!r}")
            if status in _TERMINAL_STATUSES:
                return prediction
            await asyncio.sleep(self._poll_interval)
            prediction = await self.get_prediction(prediction)

    async def _encode_file_inputs(self, model_input: dict[str, Any]) -> dict[str, Any]:
        encoded = dict(model_input)
        for key in _FILE_INPUTS:
            value = encoded.get(key)
            if isinstance(value, str):
                # File reads stay off the event loop
                encoded[key] = await asyncio.to_thread(
                    encode_file_input, value, self._max_inline_bytes
                )
        return encoded

    async def run(self, model_id: str, model_input: dict[str, Any]) -> Any:
        """Run model_id to completion and return its output.

        Raises:
            InvalidArgumentError: a local image or mask cannot be sent inline.
            ContentPolicyError: the safety filter rejected the prediction.
            UpstreamError: the API call failed or the prediction did not succeed.
        """
        model_input = await self._encode_file_inputs(model_input)

        prediction = await self.wait(await self.create_prediction(model_id, model_input))
        status = prediction.get("status")
        if status == "succeeded":
            return prediction.get("output")

        error = prediction.get("error")
        if _is_content_policy_error(error):
            raise ContentPolicyError(f"NSFW content detected: {error}")
        raise UpstreamError(f"Prediction {prediction.get('id')} {status}: {error}")

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
