"""
Serialised rate limiting for async functions.

Calls to a rate limited function are queued and run one at a time; each call
starts no earlier than ``duration`` seconds after the previous one started.
"""

import asyncio
import functools
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple, Union

from misckit.config.settings import settings
from misckit.utils.logger import get_logger

logger = get_logger(__name__)

Duration = Union[float, Callable[[], float]]


class RateLimitedFunction:
    """
    Awaitable wrapper queueing calls to ``fn``.

    Calls are started in FIFO order. An exception raised by ``fn`` is
    delivered to the caller of that invocation only; queued calls proceed.

    Examples:
        >>> limited = rate_limited(fetch_json, 0.5)  # at most 2 calls per second
        >>> results = await asyncio.gather(*(limited(url) for url in urls))
    """

    def __init__(self, fn: Callable[..., Awaitable[Any]], duration: Duration):
        self._fn = fn
        self._get_duration: Callable[[], float] = duration if callable(duration) else (lambda: duration)
        self._queue: Deque[Tuple[tuple, dict, asyncio.Future]] = deque()
        self._processing = 0
        self._last_start: Optional[float] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        functools.update_wrapper(self, fn)

    @property
    def limit_duration(self) -> float:
        """Current minimum spacing between call starts, in seconds."""
        return self._get_duration()

    @property
    def wait_count(self) -> int:
        """Number of calls waiting to start."""
        return len(self._queue)

    @property
    def processing_count(self) -> int:
        """Number of calls currently running (0 or 1)."""
        return self._processing

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        future = asyncio.get_running_loop().create_future()
        self._queue.append((args, kwargs, future))
        if self._processing == 0 and self._timer is None:
            self._process_queue()
        return await future

    def _process_queue(self) -> None:
        self._timer = None
        if self._processing > 0:
            return

        while self._queue:
            args, kwargs, future = self._queue.popleft()
            if future.done():
                # caller was cancelled while waiting
                continue

            self._processing += 1
            loop = asyncio.get_running_loop()
            self._last_start = loop.time()
            self._task = loop.create_task(self._run(args, kwargs, future))
            return

    async def _run(self, args: tuple, kwargs: dict, future: asyncio.Future) -> None:
        try:
            result = await self._fn(*args, **kwargs)
        except Exception as e:
            if not future.done():
                future.set_exception(e)
        else:
            if not future.done():
                future.set_result(result)
        finally:
            loop = asyncio.get_running_loop()
            elapsed = loop.time() - self._last_start
            remaining = max(0.0, self._get_duration() - elapsed)
            self._processing -= 1

            if self._queue:
                logger.debug(
                    "Scheduling next rate limited call",
                    function=getattr(self._fn, "__qualname__", repr(self._fn)),
                    delay=remaining,
                    waiting=len(self._queue)
                )
                self._timer = loop.call_later(remaining, self._process_queue)


def rate_limited(fn: Callable[..., Awaitable[Any]], duration: Optional[Duration] = None) -> RateLimitedFunction:
    """
    Wrap ``fn`` so that call starts are at least ``duration`` seconds apart.

    Args:
        fn: Coroutine function to wrap
        duration: Seconds between call starts, or a zero-argument callable
            read each time; defaults to ``settings.rate_limit_duration``

    Returns:
        The rate limited function
    """
    if duration is None:
        duration = settings.rate_limit_duration
    return RateLimitedFunction(fn, duration)
