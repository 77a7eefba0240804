"""Owner contexts: where caller-visible callbacks run.

Output and exit notifications originate on a background reader thread. They
are handed to an ``OwnerContext`` instead of being run directly, so the
owner (a UI loop, an asyncio loop, a CLI main thread) sees them on its own
thread and in posting order.
"""

from __future__ import annotations

import asyncio
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import structlog

logger = structlog.get_logger()

Callback = Callable[[], None]


def _invoke(callback: Callback) -> None:
    # A failing sink must not stop the queue or kill the reader thread.
    try:
        callback()
    except Exception:
        logger.exception("owner_callback_failed")


class OwnerContext(ABC):
    """Runs posted callbacks, one at a time, in posting order."""

    @abstractmethod
    def post(self, callback: Callback) -> None: ...


class ImmediateContext(OwnerContext):
    """Runs callbacks synchronously on the posting thread.

    Calls are serialized so callbacks from the reader thread and from the
    caller never interleave.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def post(self, callback: Callback) -> None:
        with self._lock:
            _invoke(callback)


class QueueContext(OwnerContext):
    """Mailbox drained by the owning thread.

    Usage::

        context = QueueContext()
        controller = LifecycleController(invocation, context=context)
        controller.start()
        context.run_until(controller.is_finalized)
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Callback] = queue.SimpleQueue()

    def post(self, callback: Callback) -> None:
        self._queue.put(callback)

    def run_pending(self) -> int:
        """Run everything queued so far without blocking. Returns the count."""
        count = 0
        while True:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return count
            _invoke(callback)
            count += 1

    def run_until(
        self,
        predicate: Callable[[], bool],
        timeout: float | None = None,
        *,
        poll_interval: float = 0.05,
    ) -> bool:
        """Run callbacks as they arrive until ``predicate()`` holds.

        Returns:
            True if the predicate became true, False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not predicate():
            wait = poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                wait = min(wait, remaining)
            try:
                callback = self._queue.get(timeout=wait)
            except queue.Empty:
                continue
            _invoke(callback)
        return True


class AsyncioContext(OwnerContext):
    """Schedules callbacks on an asyncio event loop, thread-safely."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def post(self, callback: Callback) -> None:
        self._loop.call_soon_threadsafe(_invoke, callback)
