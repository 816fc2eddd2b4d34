"""
FluxState Storage - Key-Value Backends
======================================

FluxPersist writes through an asynchronous key-value backend that stores
string values under string keys.

Backends:
    - MemoryBackend: dict in process memory, for tests and ephemeral state
    - JsonFileBackend: a single JSON object file, rewritten atomically on
      every write, in the manner of platform preference stores

Any object with the three coroutines of KeyValueBackend can be used.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueBackend(Protocol):
    """Asynchronous string key-value store."""

    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under `key`, or None."""
        ...

    async def set(self, key: str, value: str) -> bool:
        """Store `value` under `key`; return True on success."""
        ...

    async def remove(self, key: str) -> bool:
        """Delete `key`; return True if it existed."""
        ...


class MemoryBackend:
    """Backend that keeps everything in a dict."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    async def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    @property
    def data(self) -> Dict[str, str]:
        """Snapshot of the stored entries."""
        return dict(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileBackend:
    """
    Backend persisted as one JSON object file.

    The file is read lazily on first access. Each write rewrites the whole
    file through a temporary file and `os.replace`, so a crash mid-write
    leaves the previous contents intact. Writes are serialized with an
    asyncio.Lock and file I/O runs in a worker thread.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._data: Optional[Dict[str, str]] = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_file(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not contain a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write_file(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def _load_locked(self) -> Dict[str, str]:
        # Caller holds self._lock
        if self._data is None:
            self._data = await asyncio.to_thread(self._read_file)
            logger.debug(f"Loaded {len(self._data)} entries from {self._path}")
        return self._data

    async def get(self, key: str) -> Optional[str]:
        if self._data is None:
            # A first read racing a write must not replace newer data
            async with self._lock:
                await self._load_locked()
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        async with self._lock:
            data = await self._load_locked()
            updated = dict(data)
            updated[key] = value
            await asyncio.to_thread(self._write_file, updated)
            self._data = updated
        return True

    async def remove(self, key: str) -> bool:
        async with self._lock:
            data = await self._load_locked()
            if key not in data:
                return False
            updated = dict(data)
            del updated[key]
            await asyncio.to_thread(self._write_file, updated)
            self._data = updated
        return True
