"""Tests for storage data types and URL resolution."""

from pathlib import Path

import pytest

from objstore.infra.storage.client import (
    AccessPolicy,
    Credentials,
    EndpointConfig,
    ObjectLocator,
    UploadSpec,
    strip_etag,
)
from objstore.infra.storage.s3_client import build_resource_url


class TestCredentials:
    def test_secret_is_masked_in_repr(self):
        creds = Credentials(access_key_id="AKIAEXAMPLE", secret_access_key="hunter2")

        assert "hunter2" not in repr(creds)
        assert "AKIAEXAMPLE" in repr(creds)

    @pytest.mark.parametrize(("key", "secret"), [("", "s"), ("k", ""), ("  ", "s")])
    def test_rejects_blank_values(self, key, secret):
        with pytest.raises(ValueError):
            Credentials(access_key_id=key, secret_access_key=secret)


class TestEndpointConfig:
    def test_defaults_to_public_endpoint(self):
        endpoint = EndpointConfig()

        assert endpoint.is_custom is False
        assert endpoint.region_name == "us-east-1"

    def test_url_without_flag_is_not_custom(self):
        endpoint = EndpointConfig(endpoint_url="http://localhost:9000")

        assert endpoint.is_custom is False

    def test_flag_requires_url(self):
        with pytest.raises(ValueError, match="endpoint_url is required"):
            EndpointConfig(use_custom_endpoint=True)

    def test_rejects_unknown_addressing_style(self):
        with pytest.raises(ValueError, match="Unsupported addressing style"):
            EndpointConfig(addressing_style="dns")


def test_access_policy_from_flag():
    assert AccessPolicy.from_flag(True) is AccessPolicy.PUBLIC_READ
    assert AccessPolicy.from_flag(False) is AccessPolicy.PRIVATE
    assert AccessPolicy.PUBLIC_READ.value == "public-read"


def test_upload_spec_create():
    spec = UploadSpec.create("gmax", "files", "build.sbt", True)

    assert spec.locator == ObjectLocator(bucket="gmax", key="files")
    assert spec.file_path == Path("build.sbt")
    assert spec.access is AccessPolicy.PUBLIC_READ


def test_strip_etag():
    assert strip_etag('"abc"') == "abc"
    assert strip_etag("abc") == "abc"
    assert strip_etag(None) is None


@pytest.mark.parametrize(
    ("endpoint", "key", "expected"),
    [
        (EndpointConfig(), "files", "https://gmax.s3.amazonaws.com/files"),
        (
            EndpointConfig(region="eu-central-1"),
            "dir/build.sbt",
            "https://gmax.s3.eu-central-1.amazonaws.com/dir/build.sbt",
        ),
        (
            EndpointConfig(endpoint_url="http://localhost:4566/", use_custom_endpoint=True),
            "files",
            "http://localhost:4566/gmax/files",
        ),
        (
            EndpointConfig(
                endpoint_url="https://storage.example.com",
                use_custom_endpoint=True,
                addressing_style="virtual",
            ),
            "files",
            "https://gmax.storage.example.com/files",
        ),
        (EndpointConfig(), "my report #1.pdf", "https://gmax.s3.amazonaws.com/my%20report%20%231.pdf"),
    ],
)
def test_build_resource_url(endpoint, key, expected):
    assert build_resource_url(endpoint, "gmax", key) == expected
