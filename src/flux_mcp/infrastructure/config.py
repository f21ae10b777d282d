"""Configuration management for flux-mcp."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from flux_mcp.domain.catalog import DEFAULT_MODEL_ID
from flux_mcp.domain.models.generation import DEFAULT_OUTPUT_FORMAT
from flux_mcp.domain.security import CDN_DOMAIN, TEMP_ROOT

TOKEN_ENV_VAR = "REPLICATE_API_TOKEN"
CONFIG_ENV_VAR = "FLUX_MCP_CONFIG"


class ReplicateConfig(BaseModel):
    api_token: str = Field(default="")
    base_url: str = "https://api.replicate.com"
    timeout: int = 120  # per HTTP request, seconds
    poll_interval: float = 1.0
    max_inline_file_bytes: int = 10 * 1024 * 1024  # local image/mask sent as data URI

    def resolve_api_token(self) -> str:
        if self.api_token:
            return self.api_token
        return os.environ.get(TOKEN_ENV_VAR, "")


class DownloadConfig(BaseModel):
    cdn_domain: str = CDN_DOMAIN
    temp_root: str = TEMP_ROOT
    timeout: int = 120
    chunk_size: int = 64 * 1024
    max_redirects: int = 5


class GenerationConfig(BaseModel):
    default_model: str = DEFAULT_MODEL_ID
    default_output_format: str = DEFAULT_OUTPUT_FORMAT


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # console | json
    log_dir: str = ""  # Empty = stderr only


class AppConfig(BaseSettings):
    replicate: ReplicateConfig = ReplicateConfig()
    download: DownloadConfig = DownloadConfig()
    generation: GenerationConfig = GenerationConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def from_yaml(cls, path: str | Path | None = None) -> AppConfig:
        path = Path(path or os.environ.get(CONFIG_ENV_VAR, "config.yaml"))
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()


_config: AppConfig | None = None


def get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = AppConfig.from_yaml()
    return _config


def set_config(config: AppConfig) -> None:
    global _config
    _config = config
