# app/core/debounce.py
import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Cancellable timer that runs an async callback after a quiet period.

    - schedule(*args) arms the timer; calling it again before it fires
      cancels the previous timer and keeps only the latest args.
    - The callback runs as a task on the running event loop.
    - flush() fires a pending call immediately; cancel() drops it.
    """

    def __init__(self, delay_ms: int, callback: Callable[..., Awaitable[Any]]):
        self.delay = delay_ms / 1000
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple[Any, ...] | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def schedule(self, *args: Any) -> None:
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._args = args
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._args = None

    def _fire(self) -> None:
        args = self._args or ()
        self._handle = None
        self._args = None
        task = asyncio.get_running_loop().create_task(self.callback(*args))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self) -> None:
        """Run a pending call now and wait for it."""
        if self._handle is None:
            return
        self._handle.cancel()
        args = self._args or ()
        self._handle = None
        self._args = None
        await self.callback(*args)

    async def wait_idle(self) -> None:
        """Wait until every fired callback has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
