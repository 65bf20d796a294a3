"""Exception hierarchy for the notification hub."""

from __future__ import annotations

from typing import Any


class HubError(Exception):
    """Base class for every error raised by this package."""


class UnregisteredKeyError(HubError):
    """Raised when publishing to a key nobody ever subscribed to or declared.

    This is a programming error (a missing ``subscribe`` call, or publisher
    and subscriber referencing different key declarations), so the hub never
    catches it.
    """

    def __init__(self, key: Any):
        self.key = key
        super().__init__(
            f"{{ key = {key!r} }} is not registered. Subscribe to it or declare it on the hub before publishing."
        )


class PayloadTypeError(HubError, TypeError):
    """The published value does not match the key's payload type (opt-in check)."""

    def __init__(self, key: Any, value: Any):
        self.key = key
        self.value = value
        super().__init__(f"{key!r} expects {key.model!r}, got {type(value).__name__}")


class SubscriptionClosed(HubError):
    """The subscription was closed and its buffer is drained."""


class HubClosedError(HubError):
    """The hub was torn down."""


class WaitTimeoutError(HubError, TimeoutError):
    """A polling helper ran out of attempts."""
