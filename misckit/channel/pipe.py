"""
Forward an async iterable into a sink.
"""

from typing import Any, AsyncIterable, AsyncIterator, Union

from misckit.channel.channel import AsyncSink
from misckit.utils.logger import get_logger

logger = get_logger(__name__)


async def pipe_to_sink(
    source: Union[AsyncIterable[Any], AsyncIterator[Any]],
    sink: AsyncSink,
) -> None:
    """
    Consume ``source`` and replay it into ``sink``.

    Every item goes to ``sink.next``. Normal exhaustion calls
    ``sink.complete`` with the ``StopAsyncIteration`` payload (None for plain
    async generators). An exception raised by the source is handed to
    ``sink.error`` and this coroutine returns normally.

    Args:
        source: Async iterable or async iterator to consume
        sink: Destination receiving items and the terminal notification

    Examples:
        >>> ch = create_async_channel()
        >>> await pipe_to_sink(numbers(), ch)
        >>> await ch.result()
    """
    iterator = source.__aiter__()
    forwarded = 0

    while True:
        try:
            item = await iterator.__anext__()
        except StopAsyncIteration as stop:
            sink.complete(stop.args[0] if stop.args else None)
            logger.debug("Pipe completed", forwarded=forwarded)
            return
        except Exception as e:
            logger.debug("Pipe source failed", forwarded=forwarded, error=str(e))
            sink.error(e)
            return

        sink.next(item)
        forwarded += 1
