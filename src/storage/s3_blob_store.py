# src/storage/s3_blob_store.py - v1
"""Checkpoint blobs in S3 or an S3-compatible endpoint (CHECKPOINT_WRITER=s3).

Objects live at s3://{bucket}/{prefix}{job_id}/model_epoch_{n}.json. The
boto3 client is synchronous; checkpoints are small enough that the calls
run inline on the event loop.

boto3 is an optional dependency: pip install "kgembed[s3]".
"""

from __future__ import annotations

import logging
from typing import Any

from kgembed.storage.base_blob_store import BaseBlobStore

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def _make_client(region: str | None, endpoint_url: str | None) -> Any:
    try:
        import boto3
    except ImportError as e:
        raise ImportError(
            'S3 checkpoint storage needs boto3: pip install "kgembed[s3]"'
        ) from e

    options = {"region_name": region, "endpoint_url": endpoint_url}
    return boto3.client("s3", **{k: v for k, v in options.items() if v})


class S3BlobStore(BaseBlobStore):
    """Checkpoint blob store over one bucket and key prefix.

    Args:
        bucket: Target bucket.
        prefix: Key prefix shared by every checkpoint ("" for the bucket root).
        region: AWS region; boto3's default chain when unset.
        endpoint_url: MinIO or other S3-compatible endpoint.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "embedding-models/",
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self._s3 = _make_client(region, endpoint_url)
        self._bucket = bucket
        self._prefix = f"{prefix.strip('/')}/" if prefix.strip("/") else ""

    def _key(self, path: str) -> str:
        return self._prefix + path.lstrip("/")

    def _uri(self, key: str) -> str:
        return f"s3://{self._bucket}/{key}"

    async def write(self, path: str, content: bytes | str) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        key = self._key(path)
        self._s3.put_object(
            Bucket=self._bucket, Key=key, Body=content, ContentType=JSON_CONTENT_TYPE,
        )
        logger.debug("Stored %s (%d bytes)", self._uri(key), len(content))

    async def read(self, path: str) -> bytes:
        """Object body; FileNotFoundError when the key does not exist."""
        key = self._key(path)
        try:
            obj = self._s3.get_object(Bucket=self._bucket, Key=key)
        except self._s3.exceptions.NoSuchKey as e:
            raise FileNotFoundError(self._uri(key)) from e
        return obj["Body"].read()

    async def exists(self, path: str) -> bool:
        # head_object reports a missing key as a 404 ClientError.
        try:
            self._s3.head_object(Bucket=self._bucket, Key=self._key(path))
        except self._s3.exceptions.ClientError:
            return False
        return True

    async def delete(self, path: str) -> None:
        key = self._key(path)
        self._s3.delete_object(Bucket=self._bucket, Key=key)
        logger.debug("Deleted %s", self._uri(key))

    async def list_dir(self, path: str) -> list[str]:
        """Sorted object names directly under path; nested keys are skipped."""
        folder = self._key(path).rstrip("/") + "/"
        pages = self._s3.get_paginator("list_objects_v2").paginate(
            Bucket=self._bucket, Prefix=folder, Delimiter="/",
        )
        return sorted(
            name
            for page in pages
            for name in (item["Key"][len(folder):] for item in page.get("Contents", []))
            if name
        )
