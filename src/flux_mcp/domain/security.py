"""Path and URL validation.

Pure checks run before any filesystem write or network access:
- download paths must stay inside an allowlisted root
- remote URLs must be HTTPS on the Replicate CDN domain
"""

from __future__ import annotations

import os
from typing import Iterable
from urllib.parse import urlparse

from flux_mcp.domain.errors import InsecureUrlError, UnsafePathError, UnsafeUrlError

CDN_DOMAIN = "replicate.delivery"
TEMP_ROOT = "/tmp"
DOWNLOADS_DIRNAME = "downloads"


def _normalize(path: str) -> str:
    """Expand a leading ~ and normalize lexically (symlinks are not resolved)."""
    return os.path.abspath(os.path.expanduser(path))


def default_allowed_roots(temp_root: str = TEMP_ROOT) -> list[str]:
    """Home directory, the temp root, and ./downloads under the working directory."""
    roots = [temp_root, os.path.join(os.getcwd(), DOWNLOADS_DIRNAME)]
    home = os.path.expanduser("~")
    # An unresolved ~ would normalize to the working directory
    if home and home != "~":
        roots.insert(0, home)
    return roots


def _is_within(path: str, root: str) -> bool:
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def validate_download_path(
    raw_path: str, allowed_roots: Iterable[str] | None = None
) -> str:
    """Return the normalized absolute form of raw_path if it is inside an allowed root.

    Raises:
        UnsafePathError: if the resolved path escapes every allowed root.
    """
    if not raw_path or not raw_path.strip():
        raise UnsafePathError("Download path must not be empty")

    absolute = _normalize(raw_path)
    roots = default_allowed_roots() if allowed_roots is None else list(allowed_roots)

    if any(_is_within(absolute, _normalize(root)) for root in roots if root):
        return absolute

    raise UnsafePathError(
        "Download path must be within home directory, /tmp, "
        f"or project downloads folder. Got: {absolute}"
    )


def validate_remote_url(url: str, cdn_domain: str = CDN_DOMAIN) -> str:
    """Return url unchanged if it is HTTPS on cdn_domain or one of its subdomains.

    Raises:
        UnsafeUrlError: for any other scheme or host.
    """
    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower()
    except (TypeError, ValueError) as e:
        raise UnsafeUrlError(f"Invalid or unsafe URL: {e}") from e

    if parsed.scheme != "https":
        raise UnsafeUrlError("Invalid or unsafe URL: Only HTTPS URLs are allowed")

    domain = cdn_domain.lower()
    if hostname != domain and not hostname.endswith("." + domain):
        raise UnsafeUrlError("Invalid or unsafe URL: Only Replicate CDN URLs are allowed")

    return url


def reject_insecure_url(value: str) -> str:
    """Refuse plain-HTTP references; local paths and HTTPS URLs pass through."""
    if value.lower().startswith("http://"):
        raise InsecureUrlError("HTTP URLs not allowed for security reasons. Use HTTPS.")
    return value


def is_remote(value: str) -> bool:
    return value.lower().startswith(("https://", "http://", "data:"))
