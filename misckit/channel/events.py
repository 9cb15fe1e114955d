"""
Event model shared by channels and generator adapters.

An event is the atomic unit appended to a channel's log: a yielded value,
a terminal return value, or a terminal error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """Kind of a channel event."""
    YIELD = "yield"
    RETURN = "return"
    THROW = "throw"


@dataclass(frozen=True)
class AsyncEvent:
    """A tagged value appended to a channel log."""
    type: EventType
    value: Any = None

    @property
    def is_terminal(self) -> bool:
        return self.type is not EventType.YIELD


def yield_event(value: Any) -> AsyncEvent:
    return AsyncEvent(EventType.YIELD, value)


def return_event(value: Any = None) -> AsyncEvent:
    return AsyncEvent(EventType.RETURN, value)


def throw_event(error: BaseException) -> AsyncEvent:
    return AsyncEvent(EventType.THROW, error)
