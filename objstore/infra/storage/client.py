"""Object store protocol and data types.

This module defines the interface every object storage backend exposes
(bucket provisioning, single-object upload and download, URL resolution and
prefix existence checks) together with the immutable values passed across it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Protocol

DEFAULT_REGION = "us-east-1"
ADDRESSING_STYLES = ("path", "virtual")


@dataclass(frozen=True, slots=True)
class Credentials:
    """Static access key pair used to sign requests."""

    access_key_id: str
    secret_access_key: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.access_key_id or not self.access_key_id.strip():
            raise ValueError("Credentials.access_key_id must be a non-empty string.")
        if not self.secret_access_key or not self.secret_access_key.strip():
            raise ValueError(
                "Credentials.secret_access_key must be a non-empty string."
            )


@dataclass(frozen=True, slots=True)
class EndpointConfig:
    """Where the storage service lives.

    ``endpoint_url`` is only honoured when ``use_custom_endpoint`` is set;
    otherwise requests go to the public AWS endpoint of ``region``.
    """

    endpoint_url: str | None = None
    region: str = DEFAULT_REGION
    use_custom_endpoint: bool = False
    addressing_style: str = "path"

    def __post_init__(self) -> None:
        if self.use_custom_endpoint and not (
            self.endpoint_url and self.endpoint_url.strip()
        ):
            raise ValueError(
                "EndpointConfig.endpoint_url is required when use_custom_endpoint is set."
            )
        if self.addressing_style not in ADDRESSING_STYLES:
            raise ValueError(
                f"Unsupported addressing style: {self.addressing_style}. "
                f"Expected one of {', '.join(ADDRESSING_STYLES)}."
            )

    @property
    def is_custom(self) -> bool:
        return bool(self.use_custom_endpoint and self.endpoint_url)

    @property
    def region_name(self) -> str:
        return (self.region or DEFAULT_REGION).strip()


class AccessPolicy(str, Enum):
    """Canned ACL applied to an object at write time."""

    PUBLIC_READ = "public-read"
    PRIVATE = "private"

    @classmethod
    def from_flag(cls, is_public: bool) -> "AccessPolicy":
        return cls.PUBLIC_READ if is_public else cls.PRIVATE


@dataclass(frozen=True, slots=True)
class ObjectLocator:
    """Bucket and key identifying a stored object."""

    bucket: str
    key: str


@dataclass(frozen=True, slots=True)
class UploadSpec:
    """A local file to be written under a locator."""

    locator: ObjectLocator
    file_path: Path
    access: AccessPolicy

    @classmethod
    def create(
        cls, bucket: str, key: str, file_path: str | Path, is_public: bool
    ) -> "UploadSpec":
        return cls(
            locator=ObjectLocator(bucket=bucket, key=key),
            file_path=Path(file_path),
            access=AccessPolicy.from_flag(is_public),
        )


@dataclass(frozen=True, slots=True)
class UploadResult:
    """Provider response to a completed upload."""

    bucket: str
    key: str
    etag: str
    version_id: str | None = None


@dataclass(frozen=True, slots=True)
class ObjectSummary:
    """First entry of a prefix listing."""

    key: str
    etag: str | None
    size_bytes: int | None = None


@dataclass(slots=True)
class ObjectHandle:
    """Downloaded object whose body stream is owned by the caller.

    The body must be released with :meth:`close` (or by using the handle as
    an async context manager) on every exit path.
    """

    bucket: str
    key: str
    body: Any = field(repr=False)
    etag: str | None = None
    size_bytes: int | None = None
    content_type: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)
    closed: bool = False

    async def read(self) -> bytes:
        """Read the remaining payload off a worker thread."""
        if self.closed:
            raise ValueError(f"Object handle for {self.bucket}/{self.key} is closed")
        return await asyncio.to_thread(self.body.read)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close = getattr(self.body, "close", None)
        if close is not None:
            close()

    async def __aenter__(self) -> "ObjectHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


def strip_etag(value: str | None) -> str | None:
    """Remove the quoting S3 puts around ETag values."""
    if value is None:
        return None
    return value.strip('"')


class ObjectStoreClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Every operation is a coroutine. Implementations must not contact the
    remote service until an operation is awaited.
    """

    async def ensure_bucket(self, bucket: str) -> None:
        """Create ``bucket`` unless it already exists.

        Args:
            bucket: Bucket name.

        Raises:
            StorageError: If the existence check or the creation fails.
        """
        ...

    async def upload(
        self, bucket: str, key: str, file_path: str | Path, is_public: bool
    ) -> UploadResult:
        """Upload a local file, creating the bucket first if needed.

        Args:
            bucket: Target bucket name.
            key: Object key (path) in the bucket.
            file_path: Local file to upload.
            is_public: ``True`` for public-read, ``False`` for private access.

        Returns:
            UploadResult carrying the provider ETag.

        Raises:
            LocalIOError: If the local file cannot be read.
            StorageError: If any remote call fails.
        """
        ...

    async def download(self, bucket: str, key: str) -> ObjectHandle:
        """Fetch an object's stream and metadata.

        Args:
            bucket: Bucket name.
            key: Object key (path) in the bucket.

        Returns:
            ObjectHandle the caller must close.

        Raises:
            NotFoundError: If the bucket or key does not exist.
            StorageError: If the operation fails.
        """
        ...

    async def resource_url(self, bucket: str, key: str) -> str:
        """Compute the public-style URL of an object without any network call."""
        ...

    async def exists_by_prefix(self, bucket: str, prefix: str) -> ObjectSummary | None:
        """Return the first object listed under ``prefix``, or ``None``.

        Args:
            bucket: Bucket name.
            prefix: Key prefix to probe.

        Raises:
            StorageError: If the listing fails.
        """
        ...
