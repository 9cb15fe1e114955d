"""
Append-only event log with broadcast wake-up.

The log is the shared state behind a channel: an ordered list of events,
the futures of readers parked at its end, the registered subscribers and
the single settled outcome.
"""

import asyncio
from typing import Callable, List, Optional

from misckit.channel.events import AsyncEvent, EventType
from misckit.utils.logger import get_logger

logger = get_logger(__name__)

EventCallback = Callable[[AsyncEvent], None]


class _Listener:
    """A subscriber callback with its own replay cursor."""

    __slots__ = ("callback", "position")

    def __init__(self, callback: EventCallback):
        self.callback = callback
        self.position = 0


class Outcome:
    """
    The eventual result of a channel, settled at most once.

    The backing future is created on first request against the running loop,
    so a channel can be built and fed before any loop exists.
    """

    def __init__(self):
        self._event: Optional[AsyncEvent] = None
        self._future: Optional[asyncio.Future] = None

    @property
    def settled(self) -> bool:
        return self._event is not None

    def settle(self, event: AsyncEvent) -> None:
        if self._event is not None:
            return
        self._event = event
        if self._future is not None:
            self._apply(self._future)

    def future(self) -> asyncio.Future:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
            if self._event is not None:
                self._apply(self._future)
        return self._future

    def _apply(self, future: asyncio.Future) -> None:
        if future.done():
            return
        if self._event.type is EventType.THROW:
            future.set_exception(self._event.value)
        else:
            future.set_result(self._event.value)


class EventLog:
    """
    Ordered, append-only sequence of events.

    Readers keep their own integer cursor into the log. A reader that has
    drained the log parks a future via ``wait()``; every append resolves all
    parked futures at once and each reader re-checks its own position.
    """

    def __init__(self):
        self._events: List[AsyncEvent] = []
        self._waiters: List[asyncio.Future] = []
        self._listeners: List[_Listener] = []
        self.outcome = Outcome()

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> AsyncEvent:
        return self._events[index]

    @property
    def closed(self) -> bool:
        """Whether a terminal event has been appended."""
        return bool(self._events) and self._events[-1].is_terminal

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def snapshot(self) -> tuple:
        return tuple(self._events)

    def append(self, event: AsyncEvent) -> bool:
        """
        Append an event and notify readers.

        Returns False, leaving the log untouched, when the log already ends
        with a terminal event.
        """
        if self.closed:
            logger.warning(
                "Ignoring event appended after terminal event",
                event_type=event.type.value,
                terminal_type=self._events[-1].type.value,
            )
            return False

        self._events.append(event)
        logger.debug(
            "Event appended",
            event_type=event.type.value,
            position=len(self._events) - 1,
            waiters=len(self._waiters),
            listeners=len(self._listeners),
        )

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

        try:
            for listener in list(self._listeners):
                self._flush(listener)
        finally:
            # Settled even when a callback raises past the Exception guard
            if event.is_terminal:
                self.outcome.settle(event)
        return True

    async def wait(self) -> None:
        """Suspend until the next append."""
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    def add_listener(self, callback: EventCallback) -> None:
        """Replay the log to ``callback`` now and deliver every later event."""
        listener = _Listener(callback)
        self._listeners.append(listener)
        self._flush(listener)

    def _flush(self, listener: _Listener) -> None:
        while listener.position < len(self._events):
            event = self._events[listener.position]
            listener.position += 1
            try:
                listener.callback(event)
            except Exception:
                logger.exception(
                    "Subscriber callback failed",
                    event_type=event.type.value,
                    position=listener.position - 1,
                    callback=getattr(listener.callback, "__qualname__", repr(listener.callback)),
                )
