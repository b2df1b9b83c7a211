"""
Device key/value preferences.

Values are strings (callers serialise JSON themselves). Multi-key writes and
removals are applied as one operation so a crash never leaves half a session
on disk.
"""

import asyncio
import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

import structlog

from crewvar_client.exceptions import StorageError

logger = structlog.get_logger(__name__)


class Preferences(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set_many(self, values: Mapping[str, str]) -> None: ...

    async def remove_many(self, keys: Iterable[str]) -> None: ...


class MemoryPreferences:
    """In-memory preferences, for tests and platforms without a disk."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set_many(self, values: Mapping[str, str]) -> None:
        self.data.update(values)

    async def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.data.pop(key, None)


class FilePreferences:
    """
    Preferences kept in a single JSON file.

    File I/O runs in a worker thread. Writes go to a temporary file in the
    same directory which then replaces the original, so readers see either
    the old or the new contents.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set_many(self, values: Mapping[str, str]) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data.update(values)
            await asyncio.to_thread(self._write, data)

    async def remove_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if not any(key in data for key in keys):
                return
            for key in keys:
                data.pop(key, None)
            await asyncio.to_thread(self._write, data)

    def _read(self) -> dict[str, str]:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Unexpected preferences format in {self.path}")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".prefs-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("preferences_write_failed", path=str(self.path), error=str(e))
            raise StorageError(f"Could not write {self.path}: {e}") from e
