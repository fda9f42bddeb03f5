"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    AccessPolicy,
    Credentials,
    EndpointConfig,
    ObjectHandle,
    ObjectLocator,
    ObjectStoreClient,
    ObjectSummary,
    UploadResult,
    UploadSpec,
)
from .errors import (
    AccessDeniedError,
    AuthenticationError,
    ConnectivityError,
    LocalIOError,
    NotFoundError,
    ProviderError,
    StorageError,
)
from .s3_client import S3ObjectStoreClient, build_resource_url

__all__ = [
    "AccessDeniedError",
    "AccessPolicy",
    "AuthenticationError",
    "ConnectivityError",
    "Credentials",
    "EndpointConfig",
    "LocalIOError",
    "NotFoundError",
    "ObjectHandle",
    "ObjectLocator",
    "ObjectStoreClient",
    "ObjectSummary",
    "ProviderError",
    "S3ObjectStoreClient",
    "StorageError",
    "UploadResult",
    "UploadSpec",
    "build_resource_url",
]
