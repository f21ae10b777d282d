"""Error taxonomy for flux-mcp.

Each failing operation raises a FluxError carrying an ErrorKind. The tool
boundary switches on the kind to decide what the caller is allowed to see.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    INVALID_ARGUMENT = "invalid_argument"
    UNKNOWN_MODEL = "unknown_model"
    MISSING_IMAGE = "missing_image"
    INSECURE_URL = "insecure_url"
    UNSAFE_PATH = "unsafe_path"
    UNSAFE_URL = "unsafe_url"
    UNSAFE_REDIRECT = "unsafe_redirect"
    CONTENT_POLICY = "content_policy"
    UPSTREAM = "upstream"
    UNKNOWN_TOOL = "unknown_tool"


class FluxError(Exception):
    """Base class for all flux-mcp errors."""

    kind: ErrorKind = ErrorKind.UPSTREAM

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(FluxError):
    kind = ErrorKind.CONFIGURATION


class InvalidArgumentError(FluxError):
    kind = ErrorKind.INVALID_ARGUMENT


class UnknownModelError(FluxError):
    kind = ErrorKind.UNKNOWN_MODEL

    def __init__(self, model_id: str) -> None:
        super().__init__(f"Unknown model: {model_id}")
        self.model_id = model_id


class MissingImageError(FluxError):
    kind = ErrorKind.MISSING_IMAGE

    def __init__(self, model_id: str) -> None:
        super().__init__(f"Model {model_id} requires image_path")
        self.model_id = model_id


class InsecureUrlError(FluxError):
    kind = ErrorKind.INSECURE_URL


class UnsafePathError(FluxError):
    kind = ErrorKind.UNSAFE_PATH


class UnsafeUrlError(FluxError):
    kind = ErrorKind.UNSAFE_URL


class UnsafeRedirectError(FluxError):
    kind = ErrorKind.UNSAFE_REDIRECT


class ContentPolicyError(FluxError):
    kind = ErrorKind.CONTENT_POLICY


class UpstreamError(FluxError):
    kind = ErrorKind.UPSTREAM


class DownloadError(UpstreamError):
    """A download failed at the transport level or returned a bad status."""


class UnknownToolError(FluxError):
    kind = ErrorKind.UNKNOWN_TOOL

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name
