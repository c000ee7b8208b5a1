# src/storage/checkpoints.py - v1
"""Checkpoint lifecycle on a blob store: write, find latest, read, purge."""

from __future__ import annotations

import logging

from kgembed.embedding.checkpoint import decode_checkpoint, encode_checkpoint
from kgembed.embedding.store import EmbeddingStore
from kgembed.storage import layout
from kgembed.storage.base_blob_store import BaseBlobStore

logger = logging.getLogger(__name__)


async def write_checkpoint(
    blob_store: BaseBlobStore,
    job_id: str,
    processed_epochs: int,
    store: EmbeddingStore,
) -> str:
    """Serialize store to a new blob and return its path."""
    path = layout.checkpoint_path(job_id, processed_epochs)
    payload = encode_checkpoint(store)
    await blob_store.write(path, payload)
    logger.info("Checkpoint written: %s (%d bytes)", path, len(payload))
    return path


async def read_checkpoint(blob_store: BaseBlobStore, path: str) -> EmbeddingStore:
    """Load and decode the checkpoint at path.

    Raises:
        FileNotFoundError: If no blob exists at path.
        CheckpointError: If the blob cannot be decoded.
    """
    return decode_checkpoint(await blob_store.read(path))


async def latest_checkpoint_path(blob_store: BaseBlobStore, job_id: str) -> str | None:
    """Path of the job's checkpoint with the highest processed_epochs, if any."""
    folder = layout.job_folder(job_id)
    best: tuple[int, str] | None = None
    for name in await blob_store.list_dir(folder):
        epochs = layout.parse_checkpoint_epochs(name)
        if epochs is not None and (best is None or epochs > best[0]):
            best = (epochs, f"{folder}/{name}")
    return best[1] if best else None


async def delete_checkpoints(blob_store: BaseBlobStore, job_id: str) -> int:
    """Delete every checkpoint blob of a job and return how many were removed."""
    folder = layout.job_folder(job_id)
    names = [
        name for name in await blob_store.list_dir(folder)
        if layout.parse_checkpoint_epochs(name) is not None
    ]
    for name in names:
        await blob_store.delete(f"{folder}/{name}")
    logger.info("Removed %d checkpoint blobs for job %s", len(names), job_id)
    return len(names)
