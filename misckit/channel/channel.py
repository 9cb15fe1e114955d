"""
Buffered multi-consumer async channel.

``AsyncChannel`` binds a write side (``next`` / ``complete`` / ``error``) and a
replayable read side to one event log. Producers push at any pace; every
reader sees the full history in append order.

Examples:
    >>> ch = create_async_channel()
    >>> ch.next(1)
    >>> ch.next(2)
    >>> ch.complete("done")
    >>> [v async for v in ch]
    [1, 2]
    >>> await ch.result()
    'done'
"""

from typing import Any, Protocol

from misckit.channel.events import return_event, throw_event, yield_event
from misckit.channel.log import EventLog
from misckit.channel.source import ChannelSource


class AsyncSink(Protocol):
    """Write side of a channel."""

    def next(self, value: Any) -> None: ...

    def complete(self, value: Any = None) -> None: ...

    def error(self, err: BaseException) -> None: ...


class _Sink:
    """Write-only handle on an event log."""

    def __init__(self, log: EventLog):
        self._log = log

    def next(self, value: Any) -> None:
        """Append a yielded value."""
        self._log.append(yield_event(value))

    def complete(self, value: Any = None) -> None:
        """Finish the channel with ``value`` as its return value."""
        self._log.append(return_event(value))

    def error(self, err: BaseException) -> None:
        """Finish the channel with ``err``."""
        if not isinstance(err, BaseException):
            raise TypeError(f"Channel errors must be exceptions, got {type(err).__name__}")
        self._log.append(throw_event(err))


class AsyncChannel(ChannelSource, _Sink):
    """
    Channel implementing both sink and source over one shared log.

    Calls made after ``complete`` or ``error`` are ignored and logged at
    warning level; the first terminal event is authoritative.
    """

    def __init__(self):
        log = EventLog()
        ChannelSource.__init__(self, log)
        _Sink.__init__(self, log)

    @property
    def closed(self) -> bool:
        return self._log.closed

    @property
    def events(self) -> tuple:
        """Snapshot of the events appended so far."""
        return self._log.snapshot()

    @property
    def sink(self) -> AsyncSink:
        return _Sink(self._log)

    @property
    def source(self) -> ChannelSource:
        return ChannelSource(self._log)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<AsyncChannel {state} events={len(self._log)}>"


def create_async_channel() -> AsyncChannel:
    """Create an empty channel."""
    return AsyncChannel()
