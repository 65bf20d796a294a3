import pytest

from notification_hub import WaitTimeoutError
from notification_hub.testing import wait_until, wait_until_async


def test_wait_until_returns_once_condition_holds():
    calls = []

    def ready():
        calls.append(1)
        return len(calls) >= 3

    wait_until(ready, interval=0, max_attempts=5)
    assert len(calls) == 3


def test_wait_until_times_out():
    with pytest.raises(WaitTimeoutError) as exc_info:
        wait_until(lambda: False, interval=0, max_attempts=3)
    assert isinstance(exc_info.value, TimeoutError)


@pytest.mark.asyncio
async def test_wait_until_async_accepts_coroutine_condition():
    state = {"n": 0}

    async def ready():
        state["n"] += 1
        return state["n"] == 2

    await wait_until_async(ready, interval=0, max_attempts=5)
    assert state["n"] == 2


@pytest.mark.asyncio
async def test_wait_until_async_times_out():
    with pytest.raises(WaitTimeoutError):
        await wait_until_async(lambda: False, interval=0, max_attempts=2)
