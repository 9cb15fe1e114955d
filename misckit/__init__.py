"""
misckit

Small reusable async helpers: a buffered, replayable multi-consumer channel,
callback-to-iterator adapters, retry and rate limiting wrappers, and
pagination helpers built on top of the channel.
"""

__version__ = "1.0.0"

from misckit.config.settings import settings
from misckit.channel import (
    AsyncChannel,
    ChannelSource,
    create_async_channel,
    pipe_to_sink,
    run_generator,
    to_async_generator,
)

__all__ = [
    "settings",
    "AsyncChannel",
    "ChannelSource",
    "create_async_channel",
    "pipe_to_sink",
    "run_generator",
    "to_async_generator",
]
