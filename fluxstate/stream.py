"""
FluxState Stream - Broadcast Change Notification
================================================

A FluxStream delivers every value a Flux emits to every active listener, in
emission order. Delivery is synchronous with the emitting call and never
waits on listeners.

Propagation follows a breadth-first queue: a value emitted while the stream
is already delivering (for example, a listener that writes back to the same
Flux) is appended to the pending queue and delivered only after the current
value has reached every listener. This keeps the per-listener order equal
to the emission order and avoids unbounded recursion.

Listeners:
    - `listen(on_data, on_done=None)` returns a Subscription
    - `Subscription.cancel()` stops delivery to that listener
    - `on_done` is called once when the stream closes
    - `async for value in stream` iterates emissions until close
"""

import asyncio
import logging
from collections import deque
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Deque,
    Generic,
    List,
    Optional,
    TypeVar,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Marks the end of an async iteration
_DONE = object()


class Subscription(Generic[T]):
    """Handle for a single listener attached to a FluxStream."""

    def __init__(
        self,
        stream: "FluxStream[T]",
        on_data: Callable[[T], Any],
        on_done: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._stream = stream
        self._on_data = on_data
        self._on_done = on_done
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop receiving values. Safe to call more than once."""
        if self._active:
            self._active = False
            self._stream._remove(self)

    def _deliver(self, value: T) -> None:
        if not self._active:
            return
        try:
            self._on_data(value)
        except Exception:
            logger.exception(
                f"Listener {self._on_data!r} failed on stream {self._stream.name}"
            )

    def _finish(self) -> None:
        self._active = False
        if self._on_done is None:
            return
        try:
            self._on_done()
        except Exception:
            logger.exception(
                f"Done callback {self._on_done!r} failed on stream {self._stream.name}"
            )

    def __repr__(self) -> str:
        state = "active" if self._active else "cancelled"
        return f"Subscription({self._stream.name!r}, {state})"


class FluxStream(Generic[T]):
    """
    Broadcast stream owned by a single Flux.

    Only the owner calls `_emit` and `_close`; everyone else listens.
    """

    def __init__(self, name: str = "<unnamed>") -> None:
        self.name = name
        self._subscriptions: List[Subscription[T]] = []
        self._pending: Deque[T] = deque()
        self._is_propagating = False
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def listen(
        self,
        on_data: Callable[[T], Any],
        on_done: Optional[Callable[[], Any]] = None,
    ) -> Subscription[T]:
        """
        Attach a listener for values emitted from now on.

        Listening on a closed stream returns an inactive Subscription and
        calls `on_done` right away.
        """
        subscription = Subscription(self, on_data, on_done)
        if self._closed:
            subscription._finish()
            return subscription
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription[T]) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def _emit(self, value: T) -> None:
        if self._closed:
            return
        self._pending.append(value)
        if self._is_propagating:
            return

        self._is_propagating = True
        try:
            while self._pending:
                current = self._pending.popleft()
                # Listeners added during delivery wait for the next value
                for subscription in tuple(self._subscriptions):
                    subscription._deliver(current)
        finally:
            self._is_propagating = False

        if self._closed:
            self._finish_all()

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # A close requested mid-delivery completes once the queue drains
        if not self._is_propagating:
            self._finish_all()

    def _finish_all(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription._finish()

    async def _iterate(self) -> AsyncIterator[T]:
        queue: "asyncio.Queue[Any]" = asyncio.Queue()
        subscription = self.listen(
            queue.put_nowait, on_done=lambda: queue.put_nowait(_DONE)
        )
        try:
            while True:
                item = await queue.get()
                if item is _DONE:
                    return
                yield item
        finally:
            subscription.cancel()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._subscriptions)} listeners"
        return f"FluxStream({self.name!r}, {state})"
