# src/storage/blob_store_factory.py - v1
"""Factory: instantiate the checkpoint blob store from configuration."""

from __future__ import annotations

from kgembed.config.settings import Settings
from kgembed.storage.base_blob_store import BaseBlobStore
from kgembed.storage.local_blob_store import LocalBlobStore


def create_blob_store(settings: Settings) -> BaseBlobStore:
    """Create the blob store selected by CHECKPOINT_WRITER.

    Raises:
        ValueError: If the writer type is not supported.
    """
    if settings.checkpoint_writer == "local":
        return LocalBlobStore(settings.checkpoint_root)

    if settings.checkpoint_writer == "s3":
        from kgembed.storage.s3_blob_store import S3BlobStore

        return S3BlobStore(
            bucket=settings.checkpoint_s3_bucket,
            prefix=settings.checkpoint_s3_prefix,
            region=settings.checkpoint_s3_region or None,
        )

    raise ValueError(f"Unsupported checkpoint writer: {settings.checkpoint_writer!r}")
