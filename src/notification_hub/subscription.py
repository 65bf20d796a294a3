"""Consumer-side handles returned by :class:`~notification_hub.hub.Hub`.

``Subscription`` buffers delivered values and hands them to a consumer that
either blocks (``get`` / ``for``) or awaits (``get_async`` / ``async for``).
``Listener`` wraps a plain callback that the hub calls inline.

Both deregister from the hub when closed. The hub only ever calls
``_deliver``, which never blocks on the consumer.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from typing import AsyncIterator, Callable, Deque, Generic, Iterator, List, Optional, TypeVar

from .errors import SubscriptionClosed
from .keys import Key

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _wake(fut: asyncio.Future) -> None:
    if not fut.done():
        fut.set_result(None)


def _wake_threadsafe(waiters: List[asyncio.Future]) -> None:
    for fut in waiters:
        loop = fut.get_loop()
        if loop.is_closed():
            logger.debug("Skipping waiter bound to a closed event loop")
            continue
        loop.call_soon_threadsafe(_wake, fut)


class Subscription(Generic[T]):
    """Independent, cancellable stream of the values published under ``key``."""

    def __init__(
        self,
        key: Key[T],
        on_close: Callable[["Subscription[T]"], None],
        buffer_size: Optional[int] = None,
    ):
        self.key = key
        self.dropped = 0
        self._on_close = on_close
        self._buffer: Deque[T] = deque(maxlen=buffer_size)
        self._cond = threading.Condition()
        self._waiters: List[asyncio.Future] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Producer side (called by the hub)
    # ------------------------------------------------------------------

    def _deliver(self, value: T) -> None:
        with self._cond:
            if self._closed:
                return
            if self._buffer.maxlen is not None and len(self._buffer) == self._buffer.maxlen:
                self.dropped += 1
                logger.debug("Buffer full for %r, dropping oldest value", self.key)
            self._buffer.append(value)
            self._cond.notify()
            waiters, self._waiters = self._waiters, []
        _wake_threadsafe(waiters)

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._buffer)

    def get(self, timeout: float | None = None) -> T:
        """Block until the next value arrives.

        Raises ``SubscriptionClosed`` once the subscription is closed and
        drained, and ``TimeoutError`` if ``timeout`` seconds pass first.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._buffer or self._closed, timeout)
            if self._buffer:
                return self._buffer.popleft()
            if self._closed:
                raise SubscriptionClosed(f"subscription to {self.key!r} is closed")
        raise TimeoutError(f"no value for {self.key!r} within {timeout}s")

    async def get_async(self, timeout: float | None = None) -> T:
        """Await the next value without blocking the event loop."""
        if timeout is None:
            return await self._next_async()
        try:
            return await asyncio.wait_for(self._next_async(), timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"no value for {self.key!r} within {timeout}s") from None

    async def _next_async(self) -> T:
        loop = asyncio.get_running_loop()
        while True:
            with self._cond:
                if self._buffer:
                    return self._buffer.popleft()
                if self._closed:
                    raise SubscriptionClosed(f"subscription to {self.key!r} is closed")
                fut = loop.create_future()
                self._waiters.append(fut)
            try:
                await fut
            finally:
                with self._cond:
                    if fut in self._waiters:
                        self._waiters.remove(fut)

    def close(self) -> None:
        """Stop receiving values and deregister from the hub. Idempotent."""
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()
            waiters, self._waiters = self._waiters, []
        _wake_threadsafe(waiters)
        self._on_close(self)

    # ------------------------------------------------------------------
    # Iteration / context management
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[T]:
        try:
            while True:
                try:
                    yield self.get()
                except SubscriptionClosed:
                    return
        finally:
            # runs when the consumer breaks out of the loop too
            self.close()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._aiterate()

    async def _aiterate(self) -> AsyncIterator[T]:
        try:
            while True:
                try:
                    yield await self.get_async()
                except SubscriptionClosed:
                    return
        finally:
            self.close()

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription {self.key!r} {state} pending={len(self._buffer)}>"


class Listener(Generic[T]):
    """Callback registration. The callback runs inside the hub's lock, keep it short."""

    def __init__(self, key: Key[T], callback: Callable[[T], None], on_close: Callable[["Listener[T]"], None]):
        self.key = key
        self.callback = callback
        self._on_close = on_close
        self._closed = False

    def _deliver(self, value: T) -> None:
        if not self._closed:
            self.callback(value)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close(self)

    def __enter__(self) -> "Listener[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
