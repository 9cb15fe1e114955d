"""
Unit tests for async function helpers.

Tests retries, rate limiting, batched processing and pagination.
"""

import asyncio

import pytest

from misckit.function import (
    AsyncRetry,
    ExponentialBackoffOptions,
    PageFetch,
    PageRangeInfo,
    PageResult,
    batched_for_each,
    batched_map,
    create_exponential_backoff_delay,
    fetch_pages,
    for_each_page,
    get_delay_for_exponential_backoff,
    paginated,
    rate_limited,
    retry_with_delay,
)


class TestRetry:
    """Test cases for retry helpers."""

    @pytest.mark.asyncio
    async def test_retry_with_delay_success(self):
        """Test retrying until the call succeeds."""
        delays = []

        async def flaky(info):
            if info.attempts < 2:
                raise ConnectionError(f"attempt {info.attempts}")
            return "ok"

        async def do_delay(info):
            delays.append((info.attempts, str(info.error)))

        assert await retry_with_delay(flaky, do_delay) == "ok"
        assert delays == [(1, "attempt 0"), (2, "attempt 1")]

    @pytest.mark.asyncio
    async def test_retry_with_delay_forfeit(self):
        """Test that a delay function returning False gives up with None."""
        calls = 0

        async def always_failing(info):
            nonlocal calls
            calls += 1
            raise RuntimeError("nope")

        async def do_delay(info):
            return info.attempts < 3

        assert await retry_with_delay(always_failing, do_delay) is None
        assert calls == 3

    @pytest.mark.parametrize("attempts,expected", [
        (1, 1.0),
        (2, 2.0),
        (3, 4.0),
        (4, 5.0),
        (10, 5.0),
    ])
    def test_exponential_backoff_delay(self, attempts, expected):
        """Test the exponential schedule with a cap."""
        options = ExponentialBackoffOptions(init_delay=1.0, max_delay=5.0)
        assert get_delay_for_exponential_backoff(options, attempts) == expected

    def test_exponential_backoff_multiplier(self):
        """Test a custom multiplier without cap."""
        options = ExponentialBackoffOptions(init_delay=0.5, multiplier=3.0)
        assert get_delay_for_exponential_backoff(options, 3) == pytest.approx(4.5)

    @pytest.mark.asyncio
    async def test_backoff_delay_with_max_attempts(self):
        """Test the forfeiting delay function."""
        delay = create_exponential_backoff_delay(
            ExponentialBackoffOptions(init_delay=0.001, max_attempts=2)
        )
        calls = 0

        async def always_failing(info):
            nonlocal calls
            calls += 1
            raise ValueError("bad")

        assert await retry_with_delay(always_failing, delay) is None
        assert calls == 2

    @pytest.mark.asyncio
    async def test_async_retry_success(self):
        """Test the decorator with an operation failing once."""
        call_count = 0

        @AsyncRetry(max_attempts=3, base_delay=0.01)
        async def sometimes_failing_operation():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise Exception("Simulated failure")
            return "Success"

        assert await sometimes_failing_operation() == "Success"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_async_retry_max_attempts(self):
        """Test that the decorator re-raises after the last attempt."""
        call_count = 0

        @AsyncRetry(max_attempts=2, base_delay=0.01)
        async def always_failing_operation():
            nonlocal call_count
            call_count += 1
            raise Exception("Always fails")

        with pytest.raises(Exception, match="Always fails"):
            await always_failing_operation()
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_async_retry_non_retryable(self):
        """Test that exceptions outside ``exceptions`` are raised immediately."""
        call_count = 0

        @AsyncRetry(max_attempts=5, base_delay=0.01, exceptions=(ConnectionError,))
        async def operation():
            nonlocal call_count
            call_count += 1
            raise KeyError("not retryable")

        with pytest.raises(KeyError):
            await operation()
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_async_retry_returns_none_result(self):
        """Test that a legitimate None result is not mistaken for giving up."""
        @AsyncRetry(max_attempts=2, base_delay=0.01)
        async def operation():
            return None

        assert await operation() is None

    @pytest.mark.parametrize("max_attempts", [0, -1])
    def test_async_retry_rejects_invalid_max_attempts(self, max_attempts):
        """Test that fewer than one attempt is rejected when the decorator is built."""
        with pytest.raises(ValueError, match="max_attempts"):
            AsyncRetry(max_attempts=max_attempts)


class TestRateLimited:
    """Test cases for ``rate_limited``."""

    @pytest.mark.asyncio
    async def test_calls_are_spaced(self):
        """Test that call starts are at least the duration apart."""
        loop = asyncio.get_running_loop()
        starts = []

        async def record(value):
            starts.append(loop.time())
            return value * 2

        limited = rate_limited(record, 0.05)
        results = await asyncio.gather(*(limited(i) for i in range(3)))

        assert results == [0, 2, 4]
        assert starts[1] - starts[0] >= 0.045
        assert starts[2] - starts[1] >= 0.045

    @pytest.mark.asyncio
    async def test_one_call_at_a_time(self):
        """Test that calls never overlap and counters are exposed."""
        running = 0
        max_running = 0

        async def work():
            nonlocal running, max_running
            running += 1
            max_running = max(max_running, running)
            await asyncio.sleep(0.01)
            running -= 1

        limited = rate_limited(work, 0)
        tasks = [asyncio.ensure_future(limited()) for _ in range(3)]
        await asyncio.sleep(0.001)
        assert limited.processing_count == 1
        assert limited.wait_count == 2

        await asyncio.gather(*tasks)
        assert max_running == 1
        assert limited.processing_count == 0
        assert limited.wait_count == 0

    @pytest.mark.asyncio
    async def test_errors_reach_only_their_caller(self):
        """Test that one failing call does not affect queued calls."""
        async def maybe_fail(value):
            if value == 1:
                raise ValueError("one")
            return value

        limited = rate_limited(maybe_fail, 0)
        results = await asyncio.gather(*(limited(i) for i in range(3)), return_exceptions=True)

        assert results[0] == 0
        assert isinstance(results[1], ValueError)
        assert results[2] == 2

    def test_callable_duration(self):
        """Test a duration read from a callable on each use."""
        durations = iter([0.1, 0.2])

        async def noop():
            return None

        limited = rate_limited(noop, lambda: next(durations))
        assert limited.limit_duration == 0.1
        assert limited.limit_duration == 0.2
        assert limited.__name__ == "noop"


class TestBatchedProcessing:
    """Test cases for batched list processing."""

    @pytest.mark.asyncio
    async def test_batched_for_each(self):
        """Test batches and start indices."""
        seen = []

        async def handle(batch, index):
            seen.append((index, batch))

        await batched_for_each(list(range(5)), 2, handle)
        assert seen == [(0, [0, 1]), (2, [2, 3]), (4, [4])]

    @pytest.mark.asyncio
    async def test_batched_map(self):
        """Test concatenating batch results and skipping None."""
        async def double(batch, index):
            if index == 2:
                return None
            return [item * 2 for item in batch]

        assert await batched_map([1, 2, 3, 4, 5], 2, double) == [2, 4, 10]

    @pytest.mark.asyncio
    async def test_invalid_batch_size(self):
        """Test that batch sizes below 1 are rejected."""
        async def handle(batch, index):
            return None

        with pytest.raises(ValueError):
            await batched_for_each([1], 0, handle)


class TestPaginated:
    """Test cases for ``paginated``."""

    @pytest.mark.asyncio
    async def test_batches_until_max_page(self):
        """Test fetching five pages two at a time."""
        fetched = []
        handled = []

        async def fetcher(page):
            fetched.append(page)
            return PageResult(max_page=5, data=f"page-{page}")

        async def handle(batch, info):
            handled.append((batch, info))

        await paginated(2, fetcher, handle)

        assert sorted(fetched) == [0, 1, 2, 3, 4]
        assert [info for _, info in handled] == [
            PageRangeInfo(start=0, end=1, max=5),
            PageRangeInfo(start=1, end=3, max=5),
            PageRangeInfo(start=3, end=5, max=5),
        ]
        assert handled[1][0] == ["page-1", "page-2"]

    @pytest.mark.asyncio
    async def test_unlimited_batch(self):
        """Test that a batch size of 0 fetches every known page at once."""
        handled = []

        async def fetcher(page):
            return PageResult(max_page=4, data=page)

        async def handle(batch, info):
            handled.append(batch)

        await paginated(0, fetcher, handle)
        assert handled == [[0], [1, 2, 3]]


class TestFetchPages:
    """Test cases for fan-out page fetching."""

    @pytest.mark.asyncio
    async def test_for_each_page(self):
        """Test that every non-None page is delivered once."""
        async def fetcher(index):
            await asyncio.sleep(0.001 * (3 - index))
            return PageFetch(num_pages=3, page=None if index == 1 else f"p{index}")

        seen = []
        await for_each_page(fetcher, lambda page, index: seen.append((index, page)))
        assert sorted(seen) == [(0, "p0"), (2, "p2")]

    @pytest.mark.asyncio
    async def test_growing_page_count(self):
        """Test that pages discovered later are fetched too."""
        async def fetcher(index):
            return PageFetch(num_pages=min(index + 2, 4), page=index)

        seen = []
        await for_each_page(fetcher, lambda page, index: seen.append(index))
        assert sorted(seen) == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_for_each_page_failure(self):
        """Test that the first fetch failure is raised."""
        async def fetcher(index):
            if index == 2:
                raise ConnectionError("page 2 failed")
            return PageFetch(num_pages=3, page=index)

        with pytest.raises(ConnectionError, match="page 2 failed"):
            await for_each_page(fetcher, lambda page, index: None)

    @pytest.mark.asyncio
    async def test_fetch_pages_iterates(self):
        """Test the iterator form."""
        async def fetcher(index):
            return PageFetch(num_pages=3, page=index * 10)

        results = [fetched async for fetched in fetch_pages(fetcher)]
        assert sorted((f.index, f.page) for f in results) == [(0, 0), (1, 10), (2, 20)]

    @pytest.mark.asyncio
    async def test_fetch_pages_failure(self):
        """Test that a failure surfaces while iterating."""
        async def fetcher(index):
            if index == 0:
                return PageFetch(num_pages=2, page="first")
            raise TimeoutError("slow page")

        received = []
        with pytest.raises(TimeoutError):
            async for fetched in fetch_pages(fetcher):
                received.append(fetched.page)
        assert received == ["first"]
