"""
Adapters between callback-style producers and async iteration.

``to_async_generator`` lets an executor function push values through a
channel sink and hands the caller a pull-based async iterable.
``run_generator`` drives a sync or async generator to completion.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Generator, Optional, Set

from misckit.channel.channel import AsyncChannel, AsyncSink
from misckit.channel.source import ChannelSource
from misckit.utils.logger import get_logger

logger = get_logger(__name__)

GeneratorExecutor = Callable[[AsyncSink], Optional[Awaitable[Any]]]

# Strong references to running executor tasks
_executor_tasks: Set[asyncio.Task] = set()


def to_async_generator(executor: GeneratorExecutor) -> ChannelSource:
    """
    Run ``executor`` against a fresh channel and return its read side.

    The executor is called synchronously with the channel sink. A synchronous
    exception is routed to ``sink.error``. If the executor returns an
    awaitable, it is scheduled on the running loop and any exception it
    raises is routed to ``sink.error`` as well.

    Args:
        executor: Callable receiving the sink; may be a coroutine function

    Returns:
        Async iterable over the produced values; ``result()`` gives the
        return value passed to ``complete``

    Examples:
        >>> def ticker(sink):
        ...     loop = asyncio.get_running_loop()
        ...     loop.call_later(0.1, sink.next, "tick")
        ...     loop.call_later(0.2, sink.complete, "stopped")
        >>> async for tick in to_async_generator(ticker):
        ...     print(tick)
    """
    channel = AsyncChannel()
    sink = channel.sink

    try:
        pending = executor(sink)
    except Exception as e:
        logger.debug("Executor raised synchronously", executor=_name(executor), error=str(e))
        sink.error(e)
        return channel.source

    if inspect.isawaitable(pending):
        task = asyncio.ensure_future(_drive(executor, pending, sink))
        _executor_tasks.add(task)
        task.add_done_callback(_executor_tasks.discard)

    return channel.source


async def _drive(executor: GeneratorExecutor, pending: Awaitable[Any], sink: AsyncSink) -> None:
    try:
        await pending
    except asyncio.CancelledError as e:
        logger.debug("Executor cancelled", executor=_name(executor))
        sink.error(e)
        raise
    except Exception as e:
        logger.debug("Executor failed", executor=_name(executor), error=str(e))
        sink.error(e)


def _name(fn: Any) -> str:
    return getattr(fn, "__qualname__", repr(fn))


def is_async_iterable(obj: Any) -> bool:
    """Check whether ``obj`` implements the async iteration protocol."""
    return callable(getattr(obj, "__aiter__", None))


def run_generator(gen: Any, on_yield: Optional[Callable[[Any], None]] = None) -> Any:
    """
    Run a generator to completion, observing each yielded value.

    For a synchronous generator the return value is returned directly. For an
    async iterable a coroutine is returned that resolves to the return value
    (the ``StopAsyncIteration`` payload, None for plain async generators).

    Examples:
        >>> def numbers():
        ...     yield 1
        ...     yield 2
        ...     return 3
        >>> run_generator(numbers(), print)
        1
        2
        3
    """
    if is_async_iterable(gen):
        return _run_async(gen, on_yield)
    return _run_sync(gen, on_yield)


def _run_sync(gen: Generator, on_yield: Optional[Callable[[Any], None]]) -> Any:
    iterator = iter(gen)
    while True:
        try:
            value = next(iterator)
        except StopIteration as stop:
            return stop.value
        if on_yield is not None:
            on_yield(value)


async def _run_async(gen: Any, on_yield: Optional[Callable[[Any], None]]) -> Any:
    iterator = gen.__aiter__()
    while True:
        try:
            value = await iterator.__anext__()
        except StopAsyncIteration as stop:
            return stop.args[0] if stop.args else None
        if on_yield is not None:
            on_yield(value)
