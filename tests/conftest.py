from __future__ import annotations

import pytest

from objstore.common.config import get_settings
from objstore.infra.storage.client import Credentials, EndpointConfig

ENV_KEYS = (
    "S3_ACCESS_KEY_ID",
    "S3_SECRET_ACCESS_KEY",
    "S3_USE_CUSTOM_ENDPOINT",
    "S3_ENDPOINT_URL",
    "S3_REGION",
    "S3_ADDRESSING_STYLE",
    "LOG_LEVEL",
    "LOG_JSON",
    "ENABLE_METRICS",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(access_key_id="AKIAEXAMPLE", secret_access_key="secret")


@pytest.fixture
def local_endpoint() -> EndpointConfig:
    return EndpointConfig(
        endpoint_url="http://localhost:4566",
        region="us-east-1",
        use_custom_endpoint=True,
    )


@pytest.fixture
def build_sbt(tmp_path):
    """37-byte sample file used by the upload scenarios."""
    path = tmp_path / "build.sbt"
    path.write_bytes(b'name := "gmax"\nscalaVersion := "2.13"')
    assert path.stat().st_size == 37
    return path
