"""
Group the items of an iterable into fixed-size lists.
"""

from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator, List, Union

from misckit.channel.generator import is_async_iterable


def batched(
    iterable: Union[Iterable[Any], AsyncIterable[Any]],
    n: int,
) -> Union[Iterator[List[Any]], AsyncIterator[List[Any]]]:
    """
    Split ``iterable`` into lists of ``n`` items; the last one may be shorter.

    Async iterables produce an async generator of lists.

    Examples:
        >>> list(batched(range(5), 2))
        [[0, 1], [2, 3], [4]]
    """
    if n < 1:
        raise ValueError(f"Batch size must be at least 1, got {n}")

    if is_async_iterable(iterable):
        return _async_batched(iterable, n)
    return _sync_batched(iterable, n)


def _sync_batched(iterable: Iterable[Any], n: int) -> Iterator[List[Any]]:
    batch: List[Any] = []
    for item in iterable:
        batch.append(item)
        if len(batch) == n:
            yield batch
            batch = []

    if batch:
        yield batch


async def _async_batched(iterable: AsyncIterable[Any], n: int) -> AsyncIterator[List[Any]]:
    batch: List[Any] = []
    async for item in iterable:
        batch.append(item)
        if len(batch) == n:
            yield batch
            batch = []

    if batch:
        yield batch
