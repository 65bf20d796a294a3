"""Strongly-typed in-process notification hub."""

from .errors import (
    HubClosedError,
    HubError,
    PayloadTypeError,
    SubscriptionClosed,
    UnregisteredKeyError,
    WaitTimeoutError,
)
from .hub import Hub
from .keys import Key, new_key
from .settings import HubSettings
from .subscription import Listener, Subscription

__all__ = [
    "Hub",
    "HubSettings",
    "Key",
    "new_key",
    "Subscription",
    "Listener",
    "HubError",
    "UnregisteredKeyError",
    "PayloadTypeError",
    "SubscriptionClosed",
    "HubClosedError",
    "WaitTimeoutError",
]

__version__ = "0.1.0"
