"""In-memory object store implementing ObjectStoreClient for tests."""

from __future__ import annotations

import hashlib
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from objstore.infra.storage.client import (
    AccessPolicy,
    EndpointConfig,
    ObjectHandle,
    ObjectSummary,
    UploadResult,
)
from objstore.infra.storage.errors import LocalIOError, NotFoundError
from objstore.infra.storage.s3_client import build_resource_url


@dataclass
class MockObjectStoreClient:
    """In-memory mock of ObjectStoreClient for testing."""

    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    buckets: set[str] = field(default_factory=set)
    objects: dict[str, dict[str, Any]] = field(default_factory=dict)
    create_bucket_calls: int = 0
    opened_handles: list[ObjectHandle] = field(default_factory=list)

    async def ensure_bucket(self, bucket: str) -> None:
        if bucket in self.buckets:
            return
        self.create_bucket_calls += 1
        self.buckets.add(bucket)

    async def upload(
        self, bucket: str, key: str, file_path: str | Path, is_public: bool
    ) -> UploadResult:
        try:
            data = Path(file_path).read_bytes()
        except OSError as exc:
            raise LocalIOError(
                f"Failed to read local file '{file_path}': {exc}", operation="upload"
            ) from exc

        await self.ensure_bucket(bucket)
        etag = hashlib.md5(data).hexdigest()
        self.objects[f"{bucket}/{key}"] = {
            "bucket": bucket,
            "key": key,
            "data": data,
            "etag": etag,
            "access": AccessPolicy.from_flag(is_public),
        }
        return UploadResult(bucket=bucket, key=key, etag=etag)

    async def download(self, bucket: str, key: str) -> ObjectHandle:
        self._require_bucket(bucket, operation="download object")
        obj = self.objects.get(f"{bucket}/{key}")
        if obj is None:
            raise NotFoundError(
                f"Failed to download object: {bucket}/{key} does not exist",
                operation="download object",
                code="NoSuchKey",
                status_code=404,
            )
        handle = ObjectHandle(
            bucket=bucket,
            key=key,
            body=io.BytesIO(obj["data"]),
            etag=obj["etag"],
            size_bytes=len(obj["data"]),
        )
        self.opened_handles.append(handle)
        return handle

    async def resource_url(self, bucket: str, key: str) -> str:
        return build_resource_url(self.endpoint, bucket, key)

    async def exists_by_prefix(self, bucket: str, prefix: str) -> ObjectSummary | None:
        self._require_bucket(bucket, operation="list objects")
        # S3 lists keys in UTF-8 binary order
        matches = sorted(
            (obj for obj in self.objects.values() if obj["bucket"] == bucket),
            key=lambda obj: obj["key"].encode("utf-8"),
        )
        for obj in matches:
            if obj["key"].startswith(prefix):
                return ObjectSummary(
                    key=obj["key"], etag=obj["etag"], size_bytes=len(obj["data"])
                )
        return None

    def _require_bucket(self, bucket: str, *, operation: str) -> None:
        if bucket not in self.buckets:
            raise NotFoundError(
                f"Failed to {operation}: bucket {bucket} does not exist",
                operation=operation,
                code="NoSuchBucket",
                status_code=404,
            )

    def put_bytes(self, bucket: str, key: str, data: bytes) -> None:
        """Test helper to seed an object without going through upload."""
        self.buckets.add(bucket)
        self.objects[f"{bucket}/{key}"] = {
            "bucket": bucket,
            "key": key,
            "data": data,
            "etag": hashlib.md5(data).hexdigest(),
            "access": AccessPolicy.PRIVATE,
        }
