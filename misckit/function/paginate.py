"""
Batched pagination helper.

Pages are fetched ``batch_size`` at a time; the page count reported by the
last page of a batch decides whether another batch follows.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, TypeVar

from misckit.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass
class PageResult(Generic[T]):
    """A fetched page and the total page count known at fetch time."""
    max_page: int
    data: T


@dataclass
class PageRangeInfo:
    """Half-open range of pages in a batch, plus the known page count."""
    start: int
    end: int
    max: int


async def paginated(
    batch_size: int,
    fetcher: Callable[[int], Awaitable[PageResult[T]]],
    fn: Callable[[List[T], PageRangeInfo], Awaitable[None]],
) -> None:
    """
    Fetch pages in concurrent batches and hand each batch to ``fn``.

    Args:
        batch_size: Pages fetched concurrently per batch; 0 or less fetches
            every known page at once
        fetcher: Coroutine function returning the ``PageResult`` for a page index
        fn: Coroutine function receiving the page data and its range

    Examples:
        >>> async def fetch(page):
        ...     body = await client.get_json(f"/items?page={page}")
        ...     return PageResult(max_page=body["pages"], data=body["items"])
        >>> async def handle(batch, info):
        ...     print(info.start, info.end, info.max)
        >>> await paginated(4, fetch, handle)
    """
    curr_page = 0
    max_page = 1

    while curr_page < max_page:
        curr_start = curr_page
        fetches: List[Awaitable[Any]] = []

        while (batch_size <= 0 or len(fetches) < batch_size) and curr_page < max_page:
            fetches.append(fetcher(curr_page))
            curr_page += 1

        results = await asyncio.gather(*fetches)
        if not results:
            break

        max_page = results[-1].max_page

        logger.debug(
            "Fetched page batch",
            start=curr_start,
            end=curr_page,
            max_page=max_page
        )

        await fn(
            [result.data for result in results],
            PageRangeInfo(start=curr_start, end=curr_page, max=max_page),
        )
