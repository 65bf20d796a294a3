"""Polling helpers for tests that wait on values delivered from other threads/tasks."""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Union

from .errors import WaitTimeoutError

Condition = Callable[[], Union[bool, Awaitable[bool]]]


def wait_until(condition: Callable[[], bool], interval: float = 0.5, max_attempts: int = 100) -> None:
    """Check ``condition`` every ``interval`` seconds until it returns True.

    Raises ``WaitTimeoutError`` after ``max_attempts`` failed checks.
    """
    for _ in range(max_attempts):
        if condition():
            return
        time.sleep(interval)
    raise WaitTimeoutError(f"condition not met after {max_attempts} attempts")


async def wait_until_async(condition: Condition, interval: float = 0.5, max_attempts: int = 100) -> None:
    """Async variant of :func:`wait_until`; ``condition`` may be a coroutine function."""
    for _ in range(max_attempts):
        result = condition()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return
        await asyncio.sleep(interval)
    raise WaitTimeoutError(f"condition not met after {max_attempts} attempts")
