# src/storage/local_blob_store.py - v1
"""Checkpoint blobs as files under CHECKPOINT_ROOT (the default backend)."""

from __future__ import annotations

import os
from pathlib import Path

from kgembed.storage.base_blob_store import BaseBlobStore


class LocalBlobStore(BaseBlobStore):
    """Files under a root directory; paths outside the root are rejected."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        resolved = (self._root / path).resolve()
        if not resolved.is_relative_to(self._root.resolve()):
            raise ValueError(f"Path escapes blob root: {path!r}")
        return resolved

    async def write(self, path: str, content: bytes | str) -> None:
        """Write through a sibling temp file so readers never see a partial blob."""
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8") if isinstance(content, str) else content
        staging = target.with_name(f".{target.name}.tmp")
        staging.write_bytes(data)
        os.replace(staging, target)

    async def read(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    async def delete(self, path: str) -> None:
        self._resolve(path).unlink(missing_ok=True)

    async def list_dir(self, path: str) -> list[str]:
        folder = self._resolve(path)
        if not folder.is_dir():
            return []
        return sorted(
            entry.name for entry in folder.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )
