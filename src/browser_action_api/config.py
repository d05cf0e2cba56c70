"""Configuration models for the browser action API."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-extensions",
]


class BrowserConfig(BaseModel):
    """Settings for the automation target."""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    launch_args: list[str] = Field(default_factory=lambda: list(DEFAULT_LAUNCH_ARGS))
    action_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound (in seconds) for selector waits and navigations.",
    )


class ServerConfig(BaseModel):
    """Binding for the HTTP service."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class AuthConfig(BaseModel):
    """Optional shared-secret gate in front of the action routes."""

    api_key: Optional[str] = None
    header_name: str = "X-API-Key"
    query_param: str = "api_key"


class DownloadConfig(BaseModel):
    """Limits for batch media downloads."""

    max_urls: int = Field(default=10, gt=0)


class ServiceConfig(BaseSettings):
    """Top-level configuration for the service."""

    model_config = SettingsConfigDict(
        env_prefix="BROWSER_ACTION_API_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    log_level: str = Field(default="INFO")


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: Any,
) -> ServiceConfig:
    """Resolve the service configuration.

    Sources, from lowest to highest priority: field defaults, the process
    environment and ``env_file`` (``BROWSER_ACTION_API_*`` variables), the
    YAML document at ``path``, then keyword ``overrides`` such as the ones
    built by ``browser-action-api serve``. Sections are merged key by key, so
    ``server={"port": 9100}`` keeps a host that came from the environment.
    """

    explicit = _merge(read_config_file(path) if path else {}, overrides)
    settings = ServiceConfig(_env_file=env_file) if env_file is not None else ServiceConfig()
    if not explicit:
        return settings
    return ServiceConfig.model_validate(_merge(settings.model_dump(), explicit))


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML configuration file; an empty file means no settings."""

    document = yaml.safe_load(path.read_text(encoding="utf-8"))
    if document is None:
        return {}
    if not isinstance(document, Mapping):
        raise ValueError(f"{path} must contain a mapping of settings sections")
    return dict(document)


def _merge(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` overlaid with ``updates``, recursing into nested sections."""

    merged = dict(base)
    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged
