"""
Concurrent fan-out page fetching.

Page 0 is fetched first. Whenever a response reports more pages than are
currently known, fetches for the newly discovered pages start concurrently.
Pages are delivered in completion order, tagged with their index.
"""

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Generic, Optional, Set, TypeVar

from misckit.channel.channel import AsyncSink
from misckit.channel.generator import to_async_generator
from misckit.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass
class PageFetch(Generic[T]):
    """Response of a page fetcher: total page count and optional page content."""
    num_pages: int
    page: Optional[T] = None


@dataclass
class FetchedPage(Generic[T]):
    """A page delivered by ``fetch_pages``."""
    index: int
    page: T


PageFetcher = Callable[[int], Awaitable[PageFetch[T]]]


async def for_each_page(
    fetcher: PageFetcher[T],
    callback: Callable[[T, int], None],
) -> None:
    """
    Fetch every page and call ``callback(page, index)`` for each non-None page.

    Returns once no fetch is outstanding. The first failure, from a fetch or
    from ``callback``, stops further callbacks, cancels the remaining fetches
    and is raised.
    """
    finished: asyncio.Future = asyncio.get_running_loop().create_future()
    tasks: Set[asyncio.Task] = set()
    unresolved = 0
    max_pages = 1

    def spawn(index: int) -> None:
        nonlocal unresolved
        unresolved += 1
        task = asyncio.ensure_future(fetch(index))
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    async def fetch(index: int) -> None:
        if finished.done():
            return
        try:
            result = await fetcher(index)
            if finished.done():
                return
            if result.page is not None:
                callback(result.page, index)
        except Exception as e:
            if not finished.done():
                logger.warning("Page fetch failed", page=index, error=str(e))
                finished.set_exception(e)
            return
        on_fetched(result.num_pages)

    def on_fetched(num_pages: int) -> None:
        nonlocal unresolved, max_pages
        unresolved -= 1

        if max_pages < num_pages:
            logger.debug("Discovered more pages", known=max_pages, total=num_pages)
            old_max_pages, max_pages = max_pages, num_pages
            for index in range(old_max_pages, num_pages):
                spawn(index)
            return

        if unresolved == 0 and not finished.done():
            finished.set_result(None)

    spawn(0)
    try:
        await finished
    finally:
        for task in list(tasks):
            task.cancel()


async def fetch_pages(fetcher: PageFetcher[T]) -> AsyncIterator[FetchedPage[T]]:
    """
    Async iterator over every page, in completion order.

    Examples:
        >>> async def fetch(index):
        ...     body = await client.get_json(f"/repos?page={index}")
        ...     return PageFetch(num_pages=body["total_pages"], page=body["items"])
        >>> async for fetched in fetch_pages(fetch):
        ...     print(fetched.index, len(fetched.page))
    """
    async def produce(sink: AsyncSink) -> None:
        await for_each_page(fetcher, lambda page, index: sink.next(FetchedPage(index, page)))
        sink.complete()

    async for fetched in to_async_generator(produce):
        yield fetched
