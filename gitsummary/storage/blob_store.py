"""Blob storage for generated report files."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol


class BlobStore(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class LocalBlobStore:
    """Store blobs as files under *root*; keys map to relative paths."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"blob key escapes store root: {key!r}")
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Write *data* under *key*; *content_type* is not persisted locally."""
        await asyncio.to_thread(self._put_sync, self.path_for(key), data)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self.path_for(key).unlink, missing_ok=True)

    @staticmethod
    def _put_sync(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
