"""Artifact downloader — implements DownloadPort over aiohttp.

Automatic redirect following is disabled: each hop is checked against
the CDN allowlist before it is followed. Any failure removes the partial
file before the error propagates.
"""

from __future__ import annotations

import asyncio
import logging
import os
from urllib.parse import urljoin

import aiohttp

from flux_mcp.domain.errors import (
    DownloadError,
    FluxError,
    UnsafeRedirectError,
    UnsafeUrlError,
)
from flux_mcp.domain.security import CDN_DOMAIN, validate_remote_url

logger = logging.getLogger(__name__)

_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
_USER_AGENT = "flux-mcp/1.0"


def _remove_partial(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


class Downloader:
    """Streams Replicate CDN artifacts to local files."""

    def __init__(
        self,
        cdn_domain: str = CDN_DOMAIN,
        timeout: int = 120,
        chunk_size: int = 64 * 1024,
        max_redirects: int = 5,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._cdn_domain = cdn_domain
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._chunk_size = chunk_size
        self._max_redirects = max_redirects
        self._session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": _USER_AGENT},
                timeout=self._timeout,
            )
        return self._session

    async def download(self, url: str, destination: str) -> int:
        """Download url to destination and return the number of bytes written.

        Raises:
            UnsafeUrlError: url is not an HTTPS Replicate CDN URL (nothing is written).
            UnsafeRedirectError: a redirect pointed outside the CDN.
            DownloadError: transport failure, bad status, or too many redirects.
        """
        validate_remote_url(url, self._cdn_domain)
        session = await self._get_session()

        try:
            with open(destination, "wb") as f:
                written = await self._fetch_into(session, url, f)
        except FluxError:
            _remove_partial(destination)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            _remove_partial(destination)
            raise DownloadError(f"Download failed for {url}: {e}") from e

        logger.debug("Downloaded %s -> %s (%d bytes)", url, destination, written)
        return written

    async def _fetch_into(self, session: aiohttp.ClientSession, url: str, f) -> int:
        current = url
        for _ in range(self._max_redirects + 1):
            async with session.get(current, allow_redirects=False) as resp:
                if resp.status in _REDIRECT_STATUSES:
                    location = resp.headers.get("Location", "")
                    if not location:
                        raise DownloadError(f"HTTP {resp.status} without Location from {current}")
                    target = urljoin(current, location)
                    try:
                        validate_remote_url(target, self._cdn_domain)
                    except UnsafeUrlError as e:
                        logger.warning("Blocked redirect %s -> %s", current, target)
                        raise UnsafeRedirectError("Redirect to unsafe domain detected") from e
                    current = target
                    continue

                if resp.status >= 400:
                    raise DownloadError(f"HTTP {resp.status} downloading {current}")

                written = 0
                async for chunk in resp.content.iter_chunked(self._chunk_size):
                    f.write(chunk)
                    written += len(chunk)
                return written

        raise DownloadError(f"Too many redirects downloading {url}")

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
