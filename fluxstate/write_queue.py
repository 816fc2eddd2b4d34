"""
FluxState WriteQueue - Batched Backend Writes
=============================================

FIFO of pending (key, text) writes drained into a KeyValueBackend by at
most one drain loop at a time.

    queue.enqueue("1:counter", "5")
    queue.trigger()          # schedule a drain, return immediately
    await queue.flush()      # wait until everything is written

Ordering: entries are written one at a time in submission order, each write
awaited before the next starts, so for a given key the last submitted value
wins.

Failures: an entry leaves the queue only after its write succeeded. A
failed write ends the drain with that entry still at the front; the next
trigger or flush retries from there. Entries still queued when the process
exits are lost.
"""

import asyncio
import logging
from collections import deque
from typing import Deque, List, Optional, Set, Tuple

from .errors import StorageError
from .storage import KeyValueBackend

logger = logging.getLogger(__name__)


class WriteQueue:
    """Single-drain FIFO of pending backend writes."""

    def __init__(self, backend: KeyValueBackend):
        self._backend = backend
        self._entries: Deque[Tuple[str, str]] = deque()
        # The one drain loop; every drain(), flush() and trigger() shares it
        self._drain_task: Optional["asyncio.Task[None]"] = None
        # Strong references so scheduled drains are not garbage collected
        self._tasks: Set["asyncio.Task[None]"] = set()
        self.last_error: Optional[BaseException] = None

    @property
    def draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    @property
    def pending(self) -> List[Tuple[str, str]]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def enqueue(self, key: str, text: str) -> None:
        self._entries.append((key, text))

    def trigger(self) -> None:
        """
        Start a drain on the running event loop unless one is active.

        An active drain loops until the queue is empty, so entries added
        while it runs are picked up without a new task.
        """
        if self._entries:
            self._ensure_drain()

    def _ensure_drain(self) -> "asyncio.Task[None]":
        task = self._drain_task
        if task is None or task.done():
            task = asyncio.get_running_loop().create_task(self._drain())
            self._drain_task = task
            self._tasks.add(task)
            task.add_done_callback(self._drain_finished)
        return task

    def _drain_finished(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Batched write failed, {len(self._entries)} entries left queued: {error}",
                exc_info=error,
            )

    async def _drain(self) -> None:
        while self._entries:
            entry = self._entries[0]
            key, text = entry
            try:
                ok = await self._backend.set(key, text)
                if ok is False:
                    raise StorageError(f"Backend rejected write for key {key!r}")
            except Exception as e:
                self.last_error = e
                raise
            # clear() may have run while the write was in flight
            if self._entries and self._entries[0] is entry:
                self._entries.popleft()
            logger.debug(f"Wrote queued entry {key!r}, {len(self._entries)} left")

    async def drain(self) -> None:
        """
        Write queued entries until the queue is empty or a write fails.

        Joins the active drain if there is one; its failure is raised here.
        """
        if not self._entries and not self.draining:
            return
        await asyncio.shield(self._ensure_drain())

    async def flush(self) -> None:
        """Wait until the queue is empty, raising the first write failure."""
        while self._entries or self.draining:
            await asyncio.shield(self._ensure_drain())

    def clear(self) -> None:
        self._entries.clear()
        self.last_error = None
