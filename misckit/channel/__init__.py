"""
Async channels.

This module provides a buffered, replayable, multi-consumer channel that
bridges callback-style producers to ``async for`` consumers, plus adapters
built on top of it.
"""

from .events import AsyncEvent, EventType
from .channel import AsyncChannel, AsyncSink, create_async_channel
from .source import ChannelIterator, ChannelSource
from .pipe import pipe_to_sink
from .generator import (
    GeneratorExecutor,
    is_async_iterable,
    run_generator,
    to_async_generator,
)

__all__ = [
    "AsyncEvent",
    "EventType",
    "AsyncChannel",
    "AsyncSink",
    "create_async_channel",
    "ChannelIterator",
    "ChannelSource",
    "pipe_to_sink",
    "GeneratorExecutor",
    "is_async_iterable",
    "run_generator",
    "to_async_generator",
]
