"""In-process, type-safe publish/subscribe hub.

Registration policy
-------------------
A key becomes *declared* the first time anyone subscribes to it (or when it
is passed to :meth:`Hub.declare`) and stays declared for the life of the hub.

* ``publish`` to a declared key with no active subscribers is a no-op.
* ``publish`` to a key that was never declared raises
  :class:`~notification_hub.errors.UnregisteredKeyError`. That signals a
  programming mistake and is never caught here.

Delivery
--------
Every read and write of the subscriber mapping happens under one lock.
``publish`` delivers inside that lock, in registration order, so each
subscriber sees values of one key in publish order. A subscriber is only
guaranteed to see values published after ``subscribe`` returned.
"""

from __future__ import annotations

import logging
import threading
import uuid
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, TypeVar

from .errors import HubClosedError, PayloadTypeError, UnregisteredKeyError
from .keys import Key
from .settings import HubSettings
from .subscription import Listener, Subscription
from .utils.logger import setup_logger

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(eq=False)
class _Entry:
    key: Key[Any]
    # weakref.ref for subscriptions, a constant for listeners
    ref: Callable[[], Any]
    finalizer: Optional[weakref.finalize] = None


class Hub:
    """Registry of subscribers plus synchronous fan-out delivery."""

    def __init__(self, settings: HubSettings | None = None):
        self.settings = settings or HubSettings()
        self._lock = threading.RLock()
        self._entries: Dict[uuid.UUID, List[_Entry]] = {}
        self._declared: Set[uuid.UUID] = set()
        self._closed = False

        # leave the application's logging alone unless asked
        if self.settings.log_to_stdout:
            setup_logger(__package__, level=self.settings.log_level or "INFO")
        elif self.settings.log_level is not None:
            logging.getLogger(__package__).setLevel(self.settings.log_level)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def subscribe(self, key: Key[T], *, buffer_size: Optional[int] = None) -> Subscription[T]:
        """Register a new subscriber and return its value stream.

        The subscription is registered before this returns. ``buffer_size``
        overrides ``settings.buffer_size`` for this subscriber only. The hub
        holds the subscription weakly: dropping the last reference without
        closing it deregisters it too.
        """
        size = buffer_size if buffer_size is not None else self.settings.buffer_size
        if size is not None and size < 1:
            raise ValueError("buffer_size must be >= 1")
        sub: Subscription[T] = Subscription(key, on_close=self._remove, buffer_size=size)
        entry = _Entry(key=key, ref=weakref.ref(sub))
        entry.finalizer = weakref.finalize(sub, self._discard, entry)
        self._register(entry, sub)
        return sub

    def add_listener(self, key: Key[T], callback: Callable[[T], None]) -> Listener[T]:
        """Register ``callback`` to be called inline for every value under ``key``.

        Listeners stay registered until closed, even if the handle is dropped.
        """
        listener: Listener[T] = Listener(key, callback, on_close=self._remove)
        self._register(_Entry(key=key, ref=lambda: listener), listener)
        return listener

    def declare(self, *keys: Key[Any]) -> None:
        """Mark keys as registered so publishing before anyone subscribes is allowed."""
        with self._lock:
            self._ensure_open()
            for key in keys:
                self._declared.add(key.id)
        logger.debug("Declared %d key(s)", len(keys))

    def _register(self, entry: _Entry, owner) -> None:
        key = entry.key
        with self._lock:
            try:
                self._ensure_open()
            except HubClosedError:
                if entry.finalizer is not None:
                    entry.finalizer.detach()
                raise
            self._declared.add(key.id)
            entries = self._entries.setdefault(key.id, [])
            entries.append(entry)
            count = len(entries)
        logger.debug("Registered %s for %r (%d active)", type(owner).__name__, key, count)

    def _remove(self, owner) -> None:
        self._drop(owner.key, lambda e: e.ref() is owner, type(owner).__name__)

    def _discard(self, entry: _Entry) -> None:
        # finalizer of a subscription that was garbage-collected while open
        self._drop(entry.key, lambda e: e is entry, "collected Subscription")

    def _drop(self, key: Key[Any], match: Callable[[_Entry], bool], what: str) -> None:
        with self._lock:
            entries = self._entries.get(key.id)
            if not entries:
                return
            gone = [e for e in entries if match(e)]
            if not gone:
                return
            # new list so an in-flight delivery loop keeps its snapshot
            remaining = [e for e in entries if not match(e)]
            if remaining:
                self._entries[key.id] = remaining
            else:
                del self._entries[key.id]
        for e in gone:
            if e.finalizer is not None:
                e.finalizer.detach()
        logger.debug("Deregistered %s from %r (%d active)", what, key, len(remaining))

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def publish(self, key: Key[T], value: T) -> None:
        """Deliver ``value`` to every current subscriber of ``key``."""
        with self._lock:
            self._ensure_open()
            if key.id not in self._declared:
                logger.critical("Publish to unregistered key %r", key)
                raise UnregisteredKeyError(key)
            if self.settings.validate_payloads and not key.accepts(value):
                raise PayloadTypeError(key, value)

            entries = self._entries.get(key.id, [])
            if not entries:
                logger.debug("No active subscribers for %r, value dropped", key)
                return
            logger.debug("Publishing to %r (%d subscribers)", key, len(entries))
            for entry in entries:
                owner = entry.ref()
                if owner is None:
                    continue
                try:
                    owner._deliver(value)
                except Exception:
                    logger.exception("Subscriber of %r failed to handle value", key)

    # ------------------------------------------------------------------
    # Introspection / lifecycle
    # ------------------------------------------------------------------

    def is_registered(self, key: Key[Any]) -> bool:
        with self._lock:
            return key.id in self._declared

    def subscriber_count(self, key: Key[Any]) -> int:
        with self._lock:
            return sum(1 for e in self._entries.get(key.id, []) if e.ref() is not None)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Tear down: close every subscription and forget every key."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            entries = [e for bucket in self._entries.values() for e in bucket]
            self._entries.clear()
            self._declared.clear()
        owners = []
        for e in entries:
            if e.finalizer is not None:
                e.finalizer.detach()
            owner = e.ref()
            if owner is not None:
                owners.append(owner)
        for owner in owners:
            owner.close()
        logger.debug("Hub closed, %d subscriber(s) released", len(owners))

    def _ensure_open(self) -> None:
        if self._closed:
            raise HubClosedError("hub is closed")

    def __enter__(self) -> "Hub":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
