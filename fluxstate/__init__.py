"""
FluxState - Reactive Values With History and Persistence

A small reactive state library: Flux cells broadcast changes and keep a
history of their values, FluxPersist saves and restores them through an
asynchronous key-value backend or plain files, and ServiceRegistry offers a
type-keyed service locator.
"""

__version__ = "0.1.0"

from .cipher import XorCipher
from .codec import Primitive
from .config import PersistConfig
from .di import ServiceRegistry, _reset_registry, get_registry
from .errors import (
    DisposedError,
    FluxError,
    HistoryIndexError,
    MissingServiceError,
    StorageError,
    UnsupportedTypeError,
)
from .flux import Flux
from .persist import FluxPersist, _reset_persist, create_persist, get_persist
from .storage import JsonFileBackend, KeyValueBackend, MemoryBackend
from .stream import FluxStream, Subscription
from .write_queue import WriteQueue

__all__ = [
    # Reactive core
    "Flux",
    "FluxStream",
    "Subscription",
    # Persistence
    "FluxPersist",
    "PersistConfig",
    "create_persist",
    "get_persist",
    "WriteQueue",
    "Primitive",
    "XorCipher",
    # Backends
    "KeyValueBackend",
    "MemoryBackend",
    "JsonFileBackend",
    # Services
    "ServiceRegistry",
    "get_registry",
    # Exceptions
    "FluxError",
    "DisposedError",
    "HistoryIndexError",
    "UnsupportedTypeError",
    "MissingServiceError",
    "StorageError",
    # Testing utilities (internal use)
    "_reset_persist",
    "_reset_registry",
]
