#!/usr/bin/env python3
"""Run a single object storage operation from the command line.

Usage:
  objstore upload my-bucket files ./build.sbt --public
  objstore download my-bucket files --output ./build.sbt
  objstore url my-bucket files
  objstore exists my-bucket files/
  objstore ensure-bucket my-bucket

Credentials and endpoint come from S3_* environment variables (or .env).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from objstore.common.config import Settings, get_settings
from objstore.common.logging import setup_logging
from objstore.infra.observability.metrics import render_metrics
from objstore.infra.storage.client import ObjectStoreClient
from objstore.infra.storage.errors import StorageError
from objstore.infra.storage.s3_client import S3ObjectStoreClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="objstore", description="Object storage convenience commands"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Upload a local file")
    upload.add_argument("bucket")
    upload.add_argument("key")
    upload.add_argument("file", type=Path)
    upload.add_argument(
        "--public",
        action="store_true",
        help="Apply the public-read canned ACL (default: private)",
    )

    download = sub.add_parser("download", help="Download an object")
    download.add_argument("bucket")
    download.add_argument("key")
    download.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the payload to this path instead of stdout",
    )

    url = sub.add_parser("url", help="Print the object URL (no network call)")
    url.add_argument("bucket")
    url.add_argument("key")

    exists = sub.add_parser("exists", help="Probe for an object under a prefix")
    exists.add_argument("bucket")
    exists.add_argument("prefix")

    ensure = sub.add_parser("ensure-bucket", help="Create the bucket if missing")
    ensure.add_argument("bucket")
    return parser


async def run_command(args: argparse.Namespace, client: ObjectStoreClient) -> str:
    if args.command == "upload":
        result = await client.upload(args.bucket, args.key, args.file, args.public)
        return f"uploaded {result.bucket}/{result.key} etag={result.etag}"
    if args.command == "download":
        handle = await client.download(args.bucket, args.key)
        async with handle:
            payload = await handle.read()
        if args.output is None:
            return payload.decode("utf-8", errors="replace")
        args.output.write_bytes(payload)
        return f"downloaded {args.bucket}/{args.key} -> {args.output} ({len(payload)} bytes)"
    if args.command == "url":
        return await client.resource_url(args.bucket, args.key)
    if args.command == "exists":
        summary = await client.exists_by_prefix(args.bucket, args.prefix)
        if summary is None:
            return "not found"
        return f"{summary.key} etag={summary.etag}"
    if args.command == "ensure-bucket":
        await client.ensure_bucket(args.bucket)
        return f"bucket {args.bucket} ready"
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None, *, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    startup_logger = logging.getLogger("objstore.startup")

    try:
        client = S3ObjectStoreClient.from_settings(settings)
    except ValueError as exc:
        startup_logger.error("invalid storage configuration: %s", exc)
        return 2

    try:
        output = asyncio.run(run_command(args, client))
    except StorageError as exc:
        startup_logger.error(
            "%s failed: %s [kind=%s code=%s]",
            args.command,
            exc.message,
            type(exc).__name__,
            exc.code or "-",
        )
        return 1

    print(output)
    if settings.ENABLE_METRICS:
        print(render_metrics(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
