"""Debounced fetch scheduling.

Bursts of viewport and filter notifications collapse into one fetch per
quiescence window. At most one timer is pending at any time; every trigger
cancels and replaces it.
"""

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

from listing_map.logging import fetch_context, get_logger

logger = get_logger(__name__)

FetchCallback = Callable[[], Coroutine[Any, Any, object]]


class DebouncedFetchScheduler:
    """Coalesce triggers into fetches run on the current event loop.

    The fetch callback takes no arguments: it reads the bounds and filter
    that are current when it runs, not when the trigger happened.
    """

    def __init__(self, fetch: FetchCallback, *, delay: float = 0.5) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._fetch = fetch
        self._delay = delay
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Task[object]] = set()
        self._issued = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """Whether a debounce timer is waiting to fire."""
        return self._timer is not None

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def issued(self) -> int:
        """Number of fetches started so far."""
        return self._issued

    def trigger(self) -> None:
        """Restart the quiescence window; the fetch runs once it elapses."""
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire)

    def trigger_immediate(self) -> None:
        """Start a fetch now, dropping any pending debounced one."""
        self._cancel_timer()
        self._fire()

    def cancel(self) -> None:
        """Drop the pending timer, if any. In-flight fetches are left to finish."""
        if self._cancel_timer():
            logger.debug("debounce_cancelled")

    async def wait_idle(self) -> None:
        """Wait until every fetch started so far has finished."""
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def _cancel_timer(self) -> bool:
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        return True

    def _fire(self) -> None:
        self._timer = None
        self._issued += 1
        with fetch_context(self._issued):
            task = asyncio.get_running_loop().create_task(self._fetch())
        self._in_flight.add(task)
        task.add_done_callback(self._on_fetch_done)

    def _on_fetch_done(self, task: "asyncio.Task[object]") -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("fetch_task_failed", error=str(exc), exc_info=exc)
