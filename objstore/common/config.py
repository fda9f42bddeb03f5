from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from objstore.infra.storage.client import (
    ADDRESSING_STYLES,
    DEFAULT_REGION,
    Credentials,
    EndpointConfig,
)

ENV_FILE = Path(".env")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


@dataclass
class Settings:
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_CUSTOM_ENDPOINT: bool = False
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str = DEFAULT_REGION
    S3_ADDRESSING_STYLE: str = "path"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ENABLE_METRICS: bool = False

    def __post_init__(self) -> None:
        if self.S3_USE_CUSTOM_ENDPOINT and not self.S3_ENDPOINT_URL:
            raise ValueError(
                "S3_ENDPOINT_URL is required when S3_USE_CUSTOM_ENDPOINT is enabled."
            )
        style = (self.S3_ADDRESSING_STYLE or "path").strip().lower()
        if style not in ADDRESSING_STYLES:
            raise ValueError(
                f"S3_ADDRESSING_STYLE must be one of {', '.join(ADDRESSING_STYLES)}."
            )
        self.S3_ADDRESSING_STYLE = style

    def credentials(self) -> Credentials:
        if not self.S3_ACCESS_KEY_ID or not self.S3_SECRET_ACCESS_KEY:
            raise ValueError("S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY are required")
        return Credentials(
            access_key_id=self.S3_ACCESS_KEY_ID,
            secret_access_key=self.S3_SECRET_ACCESS_KEY,
        )

    def endpoint_config(self) -> EndpointConfig:
        return EndpointConfig(
            endpoint_url=self.S3_ENDPOINT_URL,
            region=self.S3_REGION or DEFAULT_REGION,
            use_custom_endpoint=self.S3_USE_CUSTOM_ENDPOINT,
            addressing_style=self.S3_ADDRESSING_STYLE,
        )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_USE_CUSTOM_ENDPOINT=_as_bool(
                os.environ.get("S3_USE_CUSTOM_ENDPOINT"), cls.S3_USE_CUSTOM_ENDPOINT
            ),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL),
            LOG_JSON=_as_bool(os.environ.get("LOG_JSON"), cls.LOG_JSON),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
