"""
Retry helpers with pluggable delays and exponential backoff.

``retry_with_delay`` is the primitive: it keeps calling an async function,
awaiting a delay function between attempts, until the call succeeds or the
delay function gives up. ``AsyncRetry`` wraps it as a decorator.
"""

import asyncio
import functools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from misckit.config.settings import settings
from misckit.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass
class RetryInfo:
    """Attempt bookkeeping passed to the retried function and delay function."""
    attempts: int = 0
    error: Optional[BaseException] = None


Retryable = Callable[[RetryInfo], Awaitable[T]]

# Returning False forfeits further attempts; None or True keeps retrying.
DelayFunction = Callable[[RetryInfo], Awaitable[Optional[bool]]]


async def retry_with_delay(f: Retryable[T], do_delay: DelayFunction) -> Optional[T]:
    """
    Call ``f`` until it succeeds.

    After every failure ``info.attempts`` is incremented, ``info.error`` is
    set and ``do_delay(info)`` is awaited. If the delay function returns
    False, the retry loop gives up and None is returned.

    Examples:
        >>> delay = create_exponential_backoff_delay(
        ...     ExponentialBackoffOptions(init_delay=0.1, max_attempts=5))
        >>> data = await retry_with_delay(lambda info: fetch_json(url), delay)
    """
    info = RetryInfo()

    while True:
        try:
            return await f(info)
        except Exception as e:
            info.attempts += 1
            info.error = e

            logger.debug(
                "Attempt failed",
                function=getattr(f, "__qualname__", repr(f)),
                attempts=info.attempts,
                error=str(e)
            )

            if await do_delay(info) is False:
                logger.warning(
                    "Giving up after failed attempts",
                    function=getattr(f, "__qualname__", repr(f)),
                    attempts=info.attempts,
                    error=str(e)
                )
                return None


@dataclass
class ExponentialBackoffOptions:
    """Parameters of an exponential backoff schedule, in seconds."""
    init_delay: float
    max_delay: Optional[float] = None
    multiplier: float = 2.0
    max_attempts: Optional[int] = None


def get_delay_for_exponential_backoff(options: ExponentialBackoffOptions, attempts: int) -> float:
    """
    Delay before the retry following attempt number ``attempts`` (1-based).

    Examples:
        >>> opts = ExponentialBackoffOptions(init_delay=1.0, max_delay=5.0)
        >>> [get_delay_for_exponential_backoff(opts, n) for n in range(1, 5)]
        [1.0, 2.0, 4.0, 5.0]
    """
    delay = options.init_delay * (options.multiplier ** (attempts - 1))
    if options.max_delay is None or delay <= options.max_delay:
        return delay
    return options.max_delay


def create_exponential_backoff_delay(options: ExponentialBackoffOptions) -> DelayFunction:
    """
    Build a delay function sleeping on an exponential schedule.

    With a positive ``max_attempts`` the delay function forfeits (returns
    False) once that many attempts have failed.
    """
    max_attempts = options.max_attempts

    if max_attempts is not None and max_attempts > 0:
        async def delay_with_forfeit(info: RetryInfo) -> bool:
            if info.attempts >= max_attempts:
                return False
            await asyncio.sleep(get_delay_for_exponential_backoff(options, info.attempts))
            return True

        return delay_with_forfeit

    async def delay(info: RetryInfo) -> None:
        await asyncio.sleep(get_delay_for_exponential_backoff(options, info.attempts))

    return delay


class AsyncRetry:
    """
    Async retry decorator with exponential backoff.

    Unlike ``retry_with_delay``, the decorated function re-raises the last
    error once ``max_attempts`` attempts have failed. Only exceptions listed
    in ``exceptions`` are retried. Unset parameters fall back to settings.

    Examples:
        >>> @AsyncRetry(max_attempts=3, base_delay=0.5)
        ... async def unreliable_operation():
        ...     return await client.get("/flaky")
        >>> result = await unreliable_operation()
    """

    def __init__(self,
                 max_attempts: Optional[int] = None,
                 base_delay: Optional[float] = None,
                 max_delay: Optional[float] = None,
                 exponential_factor: Optional[float] = None,
                 exceptions: tuple = (Exception,)):
        self.max_attempts = max_attempts if max_attempts is not None else settings.retry_max_attempts
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.options = ExponentialBackoffOptions(
            init_delay=base_delay if base_delay is not None else settings.retry_init_delay,
            max_delay=max_delay if max_delay is not None else settings.retry_max_delay,
            multiplier=exponential_factor if exponential_factor is not None else settings.retry_multiplier,
            max_attempts=self.max_attempts,
        )
        self.exceptions = exceptions

    def __call__(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        """Decorator for adding retry logic to async functions."""
        delay = create_exponential_backoff_delay(self.options)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            forfeited: Optional[RetryInfo] = None

            async def attempt(info: RetryInfo) -> T:
                return await func(*args, **kwargs)

            async def do_delay(info: RetryInfo) -> bool:
                nonlocal forfeited
                if isinstance(info.error, self.exceptions):
                    if info.attempts < self.max_attempts:
                        logger.warning(
                            "Function attempt failed, retrying",
                            function=func.__name__,
                            attempt=info.attempts,
                            max_attempts=self.max_attempts,
                            error=str(info.error)
                        )
                    if await delay(info) is not False:
                        return True
                forfeited = info
                return False

            result = await retry_with_delay(attempt, do_delay)
            if forfeited is not None:
                logger.error(
                    "Function failed after all retry attempts",
                    function=func.__name__,
                    attempts=forfeited.attempts,
                    error=str(forfeited.error)
                )
                raise forfeited.error
            return result

        return wrapper
