"""Local-device storage backends (in-memory and file-based)."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from carpcrafter.models.errors import StorageCapacityError, StorageCorruptError
from carpcrafter.storage.repository import KeyValueStorage

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def _size(value: str) -> int:
    return len(value.encode("utf-8"))


class InMemoryStorage(KeyValueStorage):
    """In-memory storage for development/testing."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._store: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._store.get(key)

    def write(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(_size(v) for k, v in self._store.items() if k != key)
            needed = others + _size(value)
            if needed > self.quota_bytes:
                raise StorageCapacityError(needed, self.quota_bytes)
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def usage(self) -> int:
        return sum(_size(v) for v in self._store.values())


class FileStorage(KeyValueStorage):
    """One UTF-8 file per key under *directory*.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a refused or interrupted write never
    touches the existing file.
    """

    def __init__(self, directory: Path, quota_bytes: int | None = None) -> None:
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: '{key}'")
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise StorageCorruptError(f"'{path.name}' is not valid UTF-8: {exc}") from exc

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        data = value.encode("utf-8")
        if self.quota_bytes is not None:
            others = self.usage() - (path.stat().st_size if path.exists() else 0)
            needed = others + len(data)
            if needed > self.quota_bytes:
                raise StorageCapacityError(needed, self.quota_bytes)

        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def usage(self) -> int:
        if not self.directory.is_dir():
            return 0
        return sum(p.stat().st_size for p in self.directory.glob("*.json") if p.is_file())
