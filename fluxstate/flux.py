"""
FluxState Flux - Reactive Value With History
============================================

A Flux holds a single value, broadcasts every change to its listeners and
remembers every value it has ever held.

```python
from fluxstate import Flux

counter = Flux(0, key="counter")
counter.subscribe(lambda v: print(f"counter -> {v}"))

counter.value = 1           # prints "counter -> 1"
counter.update(lambda v: v + 1)
counter.history             # (0, 1, 2)

counter.revert(1)           # value 1 again, history unchanged
doubled = counter.derive(lambda v: v * 2)
```

Lifecycle:
    Live --set/update/revert--> Live
    Live --dispose--> Disposed (terminal, every accessor raises DisposedError)
"""

import logging
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

from .errors import DisposedError, HistoryIndexError
from .stream import FluxStream, Subscription

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class Flux(Generic[T]):
    """
    A reactive value that notifies listeners when it changes.

    Every successful `set`/`update` appends the new value to `history`;
    `revert` re-emits an older value without touching the history.
    """

    def __init__(
        self,
        initial_value: T,
        on_init: Optional[Callable[[], Any]] = None,
        on_dispose: Optional[Callable[[], Any]] = None,
        key: Optional[str] = None,
    ) -> None:
        self._key = key or "<unnamed>"
        self._value = initial_value
        self._history: List[T] = [initial_value]
        self._stream: FluxStream[T] = FluxStream(self._key)
        self._disposed = False
        self._on_dispose = on_dispose
        # Set by derive() on the derived cell
        self._source_subscription: Optional[Subscription] = None

        if on_init is not None:
            on_init()

    @property
    def key(self) -> str:
        return self._key

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def value(self) -> T:
        self._check_live("read")
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._check_live("set value on")
        self._value = new_value
        self._history.append(new_value)
        self._stream._emit(new_value)

    def set(self, value: T) -> "Flux[T]":
        self.value = value
        return self

    def update(self, updater: Callable[[T], T]) -> "Flux[T]":
        """Replace the value with `updater(value)`."""
        self._check_live("update")
        self.value = updater(self._value)
        return self

    @property
    def history(self) -> Tuple[T, ...]:
        return tuple(self._history)

    def revert(self, history_index: int) -> "Flux[T]":
        """
        Restore the value stored at `history_index` and broadcast it.

        The history is left as it is. Negative indices are rejected rather
        than counted from the end.
        """
        self._check_live("revert")
        if history_index < 0 or history_index >= len(self._history):
            raise HistoryIndexError(history_index, len(self._history))
        self._value = self._history[history_index]
        self._stream._emit(self._value)
        return self

    @property
    def stream(self) -> FluxStream[T]:
        return self._stream

    def subscribe(
        self,
        func: Callable[[T], Any],
        on_done: Optional[Callable[[], Any]] = None,
    ) -> Subscription[T]:
        return self._stream.listen(func, on_done)

    def derive(self, compute: Callable[[T], R], key: Optional[str] = None) -> "Flux[R]":
        """
        Create a Flux whose value is always `compute(self.value)`.

        The derived cell owns its subscription to this cell: disposing the
        derived cell cancels it. Disposing this cell closes the stream and
        the derived cell keeps its last value.
        """
        derived: Flux[R] = Flux(
            compute(self.value), key=key or f"<derived:{self._key}>"
        )

        def on_source_change(value: T) -> None:
            if self._disposed or derived._disposed:
                return
            derived.value = compute(value)

        derived._source_subscription = self._stream.listen(on_source_change)
        return derived

    computed = derive

    def dispose(self) -> None:
        """Close the stream and release the cell. Idempotent."""
        if self._disposed:
            return
        self._stream._close()
        self._disposed = True
        if self._source_subscription is not None:
            self._source_subscription.cancel()
            self._source_subscription = None
        logger.debug(f"Disposed flux {self._key}")
        if self._on_dispose is not None:
            self._on_dispose()

    def _check_live(self, action: str) -> None:
        if self._disposed:
            raise DisposedError(f"Cannot {action} disposed Flux {self._key!r}")

    def __repr__(self) -> str:
        if self._disposed:
            return f"Flux({self._key!r}, <disposed>)"
        return f"Flux({self._key!r}, {self._value!r})"
