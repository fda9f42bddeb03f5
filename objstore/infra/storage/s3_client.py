"""S3-compatible object store client implementation.

This module provides an asynchronous facade over boto3 that works with AWS S3,
MinIO, LocalStack and other S3-compatible services. boto3 is blocking, so every
remote call is dispatched to the default thread pool via ``asyncio.to_thread``.

The underlying boto3 client is created lazily on the first remote operation and
cached for the lifetime of the facade.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar
from urllib.parse import quote, urlsplit

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from objstore.infra.observability.metrics import CONNECTIONS, LATENCY, OPERATIONS
from objstore.infra.storage.client import (
    DEFAULT_REGION,
    Credentials,
    EndpointConfig,
    ObjectHandle,
    ObjectSummary,
    UploadResult,
    UploadSpec,
    strip_etag,
)
from objstore.infra.storage.errors import (
    ConnectivityError,
    LocalIOError,
    ProviderError,
    StorageError,
    is_not_found,
    translate_error,
)

if TYPE_CHECKING:
    from objstore.common.config import Settings

logger = logging.getLogger("storage")

T = TypeVar("T")

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def build_resource_url(endpoint: EndpointConfig, bucket: str, key: str) -> str:
    """Compute the public-style URL of an object from configuration alone."""
    quoted_key = quote(key, safe="/~")
    if endpoint.is_custom:
        base = str(endpoint.endpoint_url).rstrip("/")
        if endpoint.addressing_style == "virtual":
            parts = urlsplit(base)
            path = parts.path.rstrip("/")
            return f"{parts.scheme}://{bucket}.{parts.netloc}{path}/{quoted_key}"
        return f"{base}/{bucket}/{quoted_key}"

    region = endpoint.region_name
    if region == DEFAULT_REGION:
        return f"https://{bucket}.s3.amazonaws.com/{quoted_key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{quoted_key}"


def _close_orphaned_handle(future: asyncio.Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class S3ObjectStoreClient:
    """S3-compatible object store client.

    Construction never contacts the service. The boto3 client is built at most
    once per instance, on first use, even when several operations start
    concurrently on a fresh instance.
    """

    def __init__(
        self,
        *,
        credentials: Credentials,
        endpoint: EndpointConfig | None = None,
    ) -> None:
        self._credentials = credentials
        self._endpoint = endpoint or EndpointConfig()
        self._client: Any | None = None
        self._client_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "S3ObjectStoreClient":
        return cls(
            credentials=settings.credentials(),
            endpoint=settings.endpoint_config(),
        )

    @property
    def endpoint(self) -> EndpointConfig:
        return self._endpoint

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @staticmethod
    def _build_client(credentials: Credentials, endpoint: EndpointConfig) -> Any:
        """Create a boto3 S3 client from credentials and endpoint configuration."""
        s3_options: dict[str, Any] = {}
        if endpoint.is_custom:
            s3_options["addressing_style"] = endpoint.addressing_style
        config = Config(signature_version="s3v4", s3=s3_options or None)

        client_kwargs: dict[str, Any] = {
            "region_name": endpoint.region_name,
            "aws_access_key_id": credentials.access_key_id,
            "aws_secret_access_key": credentials.secret_access_key,
            "config": config,
        }
        if endpoint.is_custom:
            client_kwargs["endpoint_url"] = endpoint.endpoint_url
        return boto3.client("s3", **client_kwargs)

    def _connection(self) -> Any:
        client = self._client
        if client is not None:
            return client
        with self._client_lock:
            if self._client is None:
                try:
                    built = self._build_client(self._credentials, self._endpoint)
                except ValueError as exc:
                    # botocore rejects malformed endpoint URLs with ValueError
                    raise ConnectivityError(
                        f"Failed to connect: {exc}", operation="connect"
                    ) from exc
                except BotoCoreError as exc:
                    raise translate_error(exc, operation="connect") from exc
                self._client = built
                CONNECTIONS.inc()
                logger.info(
                    "storage_connected endpoint=%s region=%s",
                    self._endpoint.endpoint_url if self._endpoint.is_custom else "aws",
                    self._endpoint.region_name,
                    extra={
                        "extra": {
                            "custom_endpoint": self._endpoint.is_custom,
                            "region": self._endpoint.region_name,
                        }
                    },
                )
            return self._client

    async def _run(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        start = time.perf_counter()
        outcome = "ok"
        logger.debug("storage_operation operation=%s", operation)
        try:
            return await asyncio.to_thread(func, *args)
        except StorageError as exc:
            outcome = type(exc).__name__
            logger.warning(
                "storage_operation_failed operation=%s code=%s error=%s",
                operation,
                exc.code or "-",
                exc.message,
                extra={
                    "extra": {
                        "operation": operation,
                        "error_kind": outcome,
                        "code": exc.code,
                        "status_code": exc.status_code,
                    }
                },
            )
            raise
        except BaseException as exc:
            outcome = type(exc).__name__
            raise
        finally:
            OPERATIONS.labels(operation, outcome).inc()
            LATENCY.labels(operation).observe(time.perf_counter() - start)

    # -- blocking helpers, always executed on a worker thread --

    def _bucket_exists(self, client: Any, bucket: str) -> bool:
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if is_not_found(exc):
                return False
            raise translate_error(exc, operation="check bucket") from exc
        except BotoCoreError as exc:
            raise translate_error(exc, operation="check bucket") from exc
        return True

    def _ensure_bucket_sync(self, bucket: str) -> None:
        client = self._connection()
        if self._bucket_exists(client, bucket):
            return

        params: dict[str, Any] = {"Bucket": bucket}
        region = self._endpoint.region_name
        if region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            client.create_bucket(**params)
        except (ClientError, BotoCoreError) as exc:
            # 并发创建时另一方可能先建成，这里不吞掉，交给调用方处理
            raise translate_error(exc, operation="create bucket") from exc
        logger.info("bucket_created bucket=%s", bucket, extra={"extra": {"bucket": bucket}})

    def _upload_sync(self, spec: UploadSpec) -> UploadResult:
        bucket, key = spec.locator.bucket, spec.locator.key
        try:
            stream = spec.file_path.open("rb")
        except OSError as exc:
            raise LocalIOError(
                f"Failed to read local file '{spec.file_path}': {exc}",
                operation="upload",
            ) from exc

        with stream:
            self._ensure_bucket_sync(bucket)
            content_type, _ = mimetypes.guess_type(spec.file_path.name)
            try:
                response = self._connection().put_object(
                    Bucket=bucket,
                    Key=key,
                    Body=stream,
                    ACL=spec.access.value,
                    ContentType=content_type or DEFAULT_CONTENT_TYPE,
                )
            except (ClientError, BotoCoreError) as exc:
                raise translate_error(exc, operation="upload object") from exc
            except OSError as exc:
                raise LocalIOError(
                    f"Failed to read local file '{spec.file_path}': {exc}",
                    operation="upload",
                ) from exc

        etag = strip_etag(response.get("ETag"))
        if not etag:
            raise ProviderError("S3 response missing ETag", operation="upload object")
        return UploadResult(
            bucket=bucket,
            key=key,
            etag=etag,
            version_id=response.get("VersionId"),
        )

    def _download_sync(self, bucket: str, key: str) -> ObjectHandle:
        try:
            response = self._connection().get_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, operation="download object") from exc

        body = response["Body"]
        try:
            size = response.get("ContentLength")
            return ObjectHandle(
                bucket=bucket,
                key=key,
                body=body,
                etag=strip_etag(response.get("ETag")),
                size_bytes=int(size) if size is not None else None,
                content_type=response.get("ContentType"),
                metadata=dict(response.get("Metadata") or {}),
            )
        except Exception:
            body.close()
            raise

    def _exists_by_prefix_sync(self, bucket: str, prefix: str) -> ObjectSummary | None:
        try:
            response = self._connection().list_objects_v2(
                Bucket=bucket, Prefix=prefix, MaxKeys=1
            )
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, operation="list objects") from exc

        contents = response.get("Contents") or []
        if not contents:
            return None
        first = contents[0]
        size = first.get("Size")
        return ObjectSummary(
            key=first["Key"],
            etag=strip_etag(first.get("ETag")),
            size_bytes=int(size) if size is not None else None,
        )

    # -- public operations --

    async def ensure_bucket(self, bucket: str) -> None:
        """Create ``bucket`` unless it already exists."""
        await self._run("ensure_bucket", self._ensure_bucket_sync, bucket)

    async def upload(
        self, bucket: str, key: str, file_path: str | Path, is_public: bool
    ) -> UploadResult:
        """Upload a local file with a public-read or private canned ACL."""
        spec = UploadSpec.create(bucket, key, file_path, is_public)
        return await self._run("upload", self._upload_sync, spec)

    async def download(self, bucket: str, key: str) -> ObjectHandle:
        """Fetch an object; the returned handle must be closed by the caller."""
        task = asyncio.ensure_future(
            self._run("download", self._download_sync, bucket, key)
        )
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # the worker thread may still hand back an open stream
            task.add_done_callback(_close_orphaned_handle)
            raise

    async def resource_url(self, bucket: str, key: str) -> str:
        """Resolve the object URL without touching the network."""
        return build_resource_url(self._endpoint, bucket, key)

    async def exists_by_prefix(self, bucket: str, prefix: str) -> ObjectSummary | None:
        """Return the first object listed under ``prefix``, if any."""
        return await self._run(
            "exists_by_prefix", self._exists_by_prefix_sync, bucket, prefix
        )
