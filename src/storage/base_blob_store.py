# src/storage/base_blob_store.py - v1
"""Abstract blob store interface for checkpoint artifacts."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseBlobStore(ABC):
    """Unified interface for checkpoint storage backends.

    Paths are relative, '/'-separated keys such as ``job-1/model_epoch_20.json``.
    """

    @abstractmethod
    async def write(self, path: str, content: bytes | str) -> None:
        """Write content to the given path, replacing any existing blob."""

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """Read content from the given path.

        Raises:
            FileNotFoundError: If nothing is stored at path.
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if path exists."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete the blob at path (no-op if it is absent)."""

    @abstractmethod
    async def list_dir(self, path: str) -> list[str]:
        """List the blob names directly under a folder, sorted."""
