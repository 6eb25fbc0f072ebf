"""
Bounded polling primitives.

Every suspension point in the pipeline is a poll-with-timeout: an acceptance
predicate sampled at a fixed interval until a deadline passes. Both the
pagination fence and the download watcher are built on it, and both honour
the same cancellation signal.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar('T')


class PollTimeout(Exception):
    """The predicate was not satisfied before the deadline"""

    def __init__(self, message: str, elapsed: float, cancelled: bool = False):
        super().__init__(message)
        self.elapsed = elapsed
        self.cancelled = cancelled


@dataclass
class PollResult(Generic[T]):
    value: T
    attempts: int
    elapsed: float


async def cancellable_sleep(seconds: float, cancel_event: Optional[asyncio.Event] = None) -> bool:
    """
    Sleep for up to ``seconds``.

    Returns:
        True if the sleep was cut short by ``cancel_event``, False otherwise
    """
    if seconds <= 0:
        return bool(cancel_event and cancel_event.is_set())
    if cancel_event is None:
        await asyncio.sleep(seconds)
        return False
    if cancel_event.is_set():
        return True
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
        return True
    except asyncio.TimeoutError:
        return False


async def poll_until(
    check: Callable[[], Awaitable[Optional[T]]],
    timeout: float,
    interval: float = 1.0,
    cancel_event: Optional[asyncio.Event] = None,
    description: str = "condition"
) -> PollResult[T]:
    """
    Call ``check`` until it returns something other than None.

    The check always runs at least once, even with a zero timeout.

    Args:
        check: Async callable; a non-None return value ends the poll
        timeout: Seconds until the deadline
        interval: Seconds between checks
        cancel_event: Optional signal that aborts the poll early
        description: Used in the timeout message

    Returns:
        PollResult carrying the accepted value

    Raises:
        PollTimeout: If the deadline passes or the cancel signal is set
    """
    start = time.monotonic()
    deadline = start + max(timeout, 0.0)
    attempts = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise PollTimeout(f"Cancelled while waiting for {description}",
                              elapsed=time.monotonic() - start, cancelled=True)

        attempts += 1
        value = await check()
        if value is not None:
            return PollResult(value=value, attempts=attempts, elapsed=time.monotonic() - start)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise PollTimeout(f"Timed out after {timeout:.1f}s waiting for {description}",
                              elapsed=time.monotonic() - start)

        if await cancellable_sleep(min(interval, remaining), cancel_event):
            raise PollTimeout(f"Cancelled while waiting for {description}",
                              elapsed=time.monotonic() - start, cancelled=True)
