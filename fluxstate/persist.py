"""
FluxState Persist - Saving and Restoring Flux Values
====================================================

FluxPersist writes a Flux's current value to a key-value backend or a file
and reads it back.

```python
import asyncio
from fluxstate import Flux, FluxPersist, MemoryBackend

persist = FluxPersist(MemoryBackend())
counter = Flux(5)

async def main():
    await persist.save(counter, "counter")
    restored = Flux(0)
    await persist.load(restored, "counter", use_cache=False)
    assert restored.value == 5

asyncio.run(main())
```

Storage layout:
    Backend keys are prefixed with the schema version, "1:counter" for the
    logical key "counter". The in-process cache is keyed by the logical key.
    Files live in `config.documents_dir` with no prefix.

Values:
    int, str and bool values use a built-in text encoding. Any other type
    needs `serialize` on save and `deserialize` on load, otherwise
    UnsupportedTypeError is raised.

Obfuscation:
    `init_encryption()` enables a repeating-key XOR transform (see
    fluxstate.cipher). It is NOT secure. When no key has been initialised,
    `encrypt=True` and `decrypt=True` silently pass text through unchanged;
    a warning is logged. Re-initialising with another passphrase does not
    re-encode values already stored, which then no longer decrypt.

State:
    Cache, write queue and cipher belong to the FluxPersist instance.
    `get_persist()` returns a lazily created process default over a
    MemoryBackend; `reset()` or `_reset_persist()` clear state between tests.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from cachetools import LRUCache

from .cipher import XorCipher
from .codec import KindLike, decode_value, encode_value
from .config import PersistConfig
from .errors import StorageError
from .flux import Flux
from .storage import KeyValueBackend, MemoryBackend
from .write_queue import WriteQueue

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Sentinel for "no default given", so None/0/False defaults still apply
_MISSING: Any = object()


class FluxPersist:
    """
    Coordinates serialization, caching, batching and obfuscation of Flux
    values against a KeyValueBackend.
    """

    def __init__(
        self,
        backend: Optional[KeyValueBackend] = None,
        config: Optional[PersistConfig] = None,
    ):
        self._backend: KeyValueBackend = backend if backend is not None else MemoryBackend()
        self._config = config or PersistConfig()
        self._cache: LRUCache = LRUCache(maxsize=self._config.cache_size)
        self._queue = WriteQueue(self._backend)
        self._cipher: Optional[XorCipher] = None

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def config(self) -> PersistConfig:
        return self._config

    @property
    def queue(self) -> WriteQueue:
        return self._queue

    @property
    def encryption_enabled(self) -> bool:
        return self._cipher is not None

    def versioned_key(self, key: str) -> str:
        return f"{self._config.schema_version}:{key}"

    def cached(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    # ------------------------------------------------------------------
    # Obfuscation
    # ------------------------------------------------------------------

    def init_encryption(self, passphrase: str) -> None:
        """
        Derive the XOR key from `passphrase`.

        Calling again replaces the key for later operations only.
        """
        if self._cipher is not None:
            logger.warning(
                "Encryption key replaced; values stored with the previous key "
                "will no longer decrypt"
            )
        self._cipher = XorCipher.from_passphrase(passphrase)

    def clear_encryption(self) -> None:
        self._cipher = None

    def _encrypt(self, text: str, key: str) -> str:
        if self._cipher is None:
            logger.warning(f"encrypt requested for {key!r} but no key is set, storing plain text")
            return text
        return self._cipher.encrypt(text)

    def _decrypt(self, text: str, key: str) -> str:
        if self._cipher is None:
            logger.warning(f"decrypt requested for {key!r} but no key is set, reading as plain text")
            return text
        return self._cipher.decrypt(text)

    # ------------------------------------------------------------------
    # Key-value backend
    # ------------------------------------------------------------------

    async def save(
        self,
        flux: Flux[T],
        key: str,
        serialize: Optional[Callable[[T], str]] = None,
        cache: bool = True,
        encrypt: bool = False,
        batch: bool = False,
    ) -> None:
        """
        Persist `flux.value` under `key`.

        With `batch=True` the write is queued and this returns before the
        backend is reached; use `flush()` to wait for it.
        """
        text = encode_value(flux.value, serialize)
        if encrypt:
            text = self._encrypt(text, key)

        if cache:
            self._cache[key] = text

        stored_key = self.versioned_key(key)
        if batch:
            self._queue.enqueue(stored_key, text)
            self._queue.trigger()
            logger.debug(f"Queued {stored_key!r} ({len(self._queue)} pending)")
            return

        ok = await self._backend.set(stored_key, text)
        if ok is False:
            raise StorageError(f"Backend rejected write for key {stored_key!r}")
        logger.debug(f"Saved {stored_key!r}")

    async def load(
        self,
        flux: Flux[T],
        key: str,
        default: Any = _MISSING,
        deserialize: Optional[Callable[[str], T]] = None,
        use_cache: bool = True,
        decrypt: bool = False,
        kind: KindLike = None,
    ) -> None:
        """
        Restore `flux.value` from the cache or the backend.

        When nothing is stored, `default` is assigned if one was passed
        (including falsy values such as 0 or None) and the cell is otherwise
        left alone.
        """
        text: Optional[str] = None
        if use_cache and key in self._cache:
            text = self._cache[key]
            logger.debug(f"Cache hit for {key!r}")
        else:
            text = await self._backend.get(self.versioned_key(key))
            if text is not None and use_cache:
                self._cache[key] = text

        if text is None:
            if default is not _MISSING:
                flux.value = default
            return

        if decrypt:
            text = self._decrypt(text, key)

        flux.value = decode_value(text, deserialize, kind, flux.value)

    async def remove(self, key: str) -> bool:
        """Drop `key` from the cache and the backend."""
        self._cache.pop(key, None)
        return await self._backend.remove(self.versioned_key(key))

    async def flush(self) -> None:
        """Wait until every batched write has reached the backend."""
        await self._queue.flush()

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def file_path(self, file_name: str) -> Path:
        return self._config.documents_dir / file_name

    async def save_to_file(
        self,
        flux: Flux[T],
        file_name: str,
        serialize: Optional[Callable[[T], str]] = None,
        encrypt: bool = False,
    ) -> None:
        text = encode_value(flux.value, serialize)
        if encrypt:
            text = self._encrypt(text, file_name)

        path = self.file_path(file_name)

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")

        await asyncio.to_thread(write)
        logger.debug(f"Saved {flux.key} to {path}")

    async def load_from_file(
        self,
        flux: Flux[T],
        file_name: str,
        deserialize: Optional[Callable[[str], T]] = None,
        default: Any = _MISSING,
        decrypt: bool = False,
        kind: KindLike = None,
    ) -> None:
        path = self.file_path(file_name)

        def read() -> Optional[str]:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

        text = await asyncio.to_thread(read)
        if text is None:
            if default is not _MISSING:
                flux.value = default
            return

        if decrypt:
            text = self._decrypt(text, file_name)

        flux.value = decode_value(text, deserialize, kind, flux.value)

    def reset(self) -> None:
        """Clear cache, pending writes and the encryption key."""
        self._cache.clear()
        self._queue.clear()
        self._cipher = None


def create_persist(
    backend: Optional[KeyValueBackend] = None,
    schema_version: Optional[int] = None,
    cache_size: Optional[int] = None,
    documents_dir: Optional[Path] = None,
) -> FluxPersist:
    """
    Create a FluxPersist, starting from the environment configuration.

    Args:
        backend: Key-value backend (default: a new MemoryBackend)
        schema_version: Backend key prefix
        cache_size: Maximum number of cached keys
        documents_dir: Directory for file persistence

    Returns:
        Configured FluxPersist instance
    """
    overrides = {
        name: value
        for name, value in (
            ("schema_version", schema_version),
            ("cache_size", cache_size),
            ("documents_dir", documents_dir),
        )
        if value is not None
    }
    config = PersistConfig.from_env().with_overrides(**overrides)
    return FluxPersist(backend, config)


_default_persist: Optional[FluxPersist] = None


def get_persist() -> FluxPersist:
    """
    Get or create the process-wide FluxPersist.

    Created on first access from the environment configuration, over a
    MemoryBackend. Tests reset it with _reset_persist().
    """
    global _default_persist
    if _default_persist is None:
        _default_persist = create_persist()
    return _default_persist


def _reset_persist() -> None:
    """Discard the process-wide FluxPersist. For tests."""
    global _default_persist
    _default_persist = None
