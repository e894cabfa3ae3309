import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


async def poll_until(
    probe: Callable[[], Awaitable[T]],
    *,
    interval: float,
    deadline: float,
    clock: Callable[[], float] = time.monotonic,
) -> Optional[T]:
    """
    Await `probe` every `interval` seconds until it returns something truthy.

    `deadline` is an absolute `clock()` value. The probe always runs at least
    once and once more when the deadline is reached. Returns the truthy result,
    or None if the deadline passed first.
    """
    while True:
        result = await probe()
        if result:
            return result
        remaining = deadline - clock()
        if remaining <= 0:
            return None
        await asyncio.sleep(min(interval, remaining))
