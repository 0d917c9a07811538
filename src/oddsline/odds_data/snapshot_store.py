"""Durable key-value stores backing the odds cache manager."""

from __future__ import annotations

import os
import threading
import uuid
from contextlib import suppress
from pathlib import Path
from typing import Protocol

from oddsline.odds_data.errors import StoreError


class SnapshotStore(Protocol):
    """Minimal blob store: ``read`` returns None for unknown keys."""

    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, data: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class MemorySnapshotStore:
    """Process-local store; contents do not survive a restart."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> bytes | None:
        with self._lock:
            return self._blobs.get(key)

    def write(self, key: str, data: bytes) -> None:
        with self._lock:
            self._blobs[key] = bytes(data)

    def delete(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._blobs)


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".tmp-{path.name}-{uuid.uuid4().hex}")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)
    except OSError:
        with suppress(FileNotFoundError):
            tmp_path.unlink()
        raise


class FileSnapshotStore:
    """One JSON file per key under ``root``."""

    def __init__(self, root: Path | str = Path("data/oddsline")) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"invalid snapshot key: {key!r}")
        return self.root / f"{key}.json"

    def read(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"failed reading {path}: {exc}") from exc

    def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            _atomic_write_bytes(path, data)
        except OSError as exc:
            raise StoreError(f"failed writing {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"failed deleting {path}: {exc}") from exc
