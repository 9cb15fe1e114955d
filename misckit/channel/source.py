"""
Read side of a channel.

A ``ChannelSource`` replays the full event log to every reader. Each call to
``__aiter__`` starts a new cursor at position 0, so late readers catch up on
everything produced so far and then follow the live tail.
"""

import asyncio
from typing import Any, Callable, List, Tuple

from misckit.channel.events import AsyncEvent, EventType
from misckit.channel.log import EventCallback, EventLog


class ChannelIterator:
    """
    Independent cursor over a channel log.

    Yield events are produced as items. A Return event ends iteration with
    ``StopAsyncIteration(value)`` and stores the payload in ``return_value``.
    A Throw event raises the carried error once; afterwards the iterator is
    exhausted.
    """

    def __init__(self, log: EventLog):
        self._log = log
        self._position = 0
        self._finished = False
        self.return_value: Any = None

    @property
    def position(self) -> int:
        return self._position

    def __aiter__(self) -> "ChannelIterator":
        return self

    async def __anext__(self) -> Any:
        while not self._finished:
            if self._position < len(self._log):
                event = self._log[self._position]
                self._position += 1
                return self._surface(event)
            await self._log.wait()
        raise StopAsyncIteration(self.return_value)

    def _surface(self, event: AsyncEvent) -> Any:
        if event.type is EventType.YIELD:
            return event.value
        self._finished = True
        if event.type is EventType.RETURN:
            self.return_value = event.value
            raise StopAsyncIteration(event.value)
        raise event.value


class ChannelSource:
    """Replayable, asynchronously iterable view over a channel log."""

    def __init__(self, log: EventLog):
        self._log = log

    def __aiter__(self) -> ChannelIterator:
        return ChannelIterator(self._log)

    def subscribe(self, callback: EventCallback) -> None:
        """
        Deliver every event, past and future, to ``callback``.

        Buffered events are replayed synchronously before this call returns.
        Exceptions raised by ``callback`` are logged and do not affect other
        subscribers or readers.
        """
        self._log.add_listener(callback)

    def on_yield(self, callback: Callable[[Any], None]) -> None:
        self.subscribe(_filtered(EventType.YIELD, callback))

    def on_return(self, callback: Callable[[Any], None]) -> None:
        self.subscribe(_filtered(EventType.RETURN, callback))

    def on_throw(self, callback: Callable[[BaseException], None]) -> None:
        self.subscribe(_filtered(EventType.THROW, callback))

    def result(self) -> "asyncio.Future[Any]":
        """
        Return the channel outcome.

        The same future is returned on every call. It resolves with the
        Return payload or fails with the Throw error. Must be called while an
        event loop is running.
        """
        return self._log.outcome.future()

    async def collect(self) -> Tuple[List[Any], Any]:
        """Read a fresh cursor to the end and return ``(items, return_value)``."""
        iterator = self.__aiter__()
        items = [item async for item in iterator]
        return items, iterator.return_value


def _filtered(event_type: EventType, callback: Callable[[Any], None]) -> EventCallback:
    def deliver(event: AsyncEvent) -> None:
        if event.type is event_type:
            callback(event.value)

    deliver.__qualname__ = getattr(callback, "__qualname__", deliver.__qualname__)
    return deliver
