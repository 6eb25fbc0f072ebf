"""
Bounded worker pool for report runs.

Each request runs as one asyncio task. A fixed-size semaphore caps how many
runs drive browsers at once, independent of the event loop's default
executor. Every run gets a handle carrying its own cancellation signal.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class ReportHandle:
    """Cancellable handle for one submitted run"""

    run_id: int
    task: asyncio.Task
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    def cancel(self) -> None:
        """
        Ask the run to stop.

        Sets the cancellation signal first so bounded waits end as timeouts and
        cleanup still runs, then cancels the task itself.
        """
        self.cancel_event.set()
        self.task.cancel()

    def done(self) -> bool:
        return self.task.done()

    async def result(self, timeout: Optional[float] = None, cancel_on_timeout: bool = False):
        """
        Wait for the run's result.

        Args:
            timeout: Seconds to wait; None waits indefinitely
            cancel_on_timeout: Cancel the run when the wait times out;
                otherwise it keeps running to completion

        Raises:
            asyncio.TimeoutError: If the wait times out
        """
        try:
            return await asyncio.wait_for(asyncio.shield(self.task), timeout=timeout)
        except asyncio.TimeoutError:
            if cancel_on_timeout:
                logger.warning("Run %d exceeded %ss; cancelling", self.run_id, timeout)
                self.cancel()
            else:
                logger.warning("Run %d exceeded %ss; letting it finish in the background", self.run_id, timeout)
            raise


class ReportWorkerPool:
    """Runs report coroutines with a fixed concurrency limit"""

    def __init__(self, max_workers: int = 10):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got: {max_workers}")
        self.max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers)
        self._handles: Dict[int, ReportHandle] = {}
        self._ids = itertools.count(1)
        self._running = 0

    def submit(self, job: Callable[[asyncio.Event], Awaitable[T]]) -> ReportHandle:
        """
        Schedule ``job`` on the pool.

        Args:
            job: Coroutine function taking the run's cancellation event

        Returns:
            ReportHandle for the scheduled run
        """
        run_id = next(self._ids)
        cancel_event = asyncio.Event()

        async def runner():
            async with self._semaphore:
                self._running += 1
                logger.debug("Run %d started (%d/%d slots in use)", run_id, self._running, self.max_workers)
                try:
                    return await job(cancel_event)
                finally:
                    self._running -= 1

        task = asyncio.get_running_loop().create_task(runner(), name=f"report-run-{run_id}")
        handle = ReportHandle(run_id=run_id, task=task, cancel_event=cancel_event)
        self._handles[run_id] = handle
        task.add_done_callback(lambda _: self._handles.pop(run_id, None))
        return handle

    @property
    def in_flight(self) -> int:
        return self._running

    @property
    def pending(self) -> int:
        return len(self._handles)

    async def shutdown(self, cancel: bool = True) -> None:
        """Wait for, or cancel, every outstanding run"""
        handles = list(self._handles.values())
        if cancel:
            for handle in handles:
                handle.cancel()
        if handles:
            await asyncio.gather(*(h.task for h in handles), return_exceptions=True)
