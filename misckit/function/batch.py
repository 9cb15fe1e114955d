"""
Run async callbacks over consecutive slices of a list.
"""

from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from misckit.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')
U = TypeVar('U')


def _check_batch_size(batch_size: int) -> None:
    if batch_size < 1:
        raise ValueError(f"Batch size must be at least 1, got {batch_size}")


async def batched_for_each(
    items: Sequence[T],
    batch_size: int,
    fn: Callable[[List[T], int], Awaitable[None]],
) -> None:
    """
    Await ``fn(batch, start_index)`` for each slice of ``items``, in order.

    Examples:
        >>> async def store(batch, index):
        ...     await db.insert_many(batch)
        >>> await batched_for_each(rows, 100, store)
    """
    _check_batch_size(batch_size)

    for start in range(0, len(items), batch_size):
        await fn(list(items[start:start + batch_size]), start)


async def batched_map(
    items: Sequence[T],
    batch_size: int,
    fn: Callable[[List[T], int], Awaitable[Optional[List[U]]]],
) -> List[U]:
    """
    Like ``batched_for_each`` but concatenates the lists returned by ``fn``.

    A batch for which ``fn`` returns None contributes nothing.
    """
    _check_batch_size(batch_size)

    results: List[U] = []
    for start in range(0, len(items), batch_size):
        batch_result = await fn(list(items[start:start + batch_size]), start)
        if batch_result:
            results.extend(batch_result)

    logger.debug(
        "Batched map finished",
        total_items=len(items),
        batch_size=batch_size,
        result_count=len(results)
    )
    return results
