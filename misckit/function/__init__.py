"""
Async function helpers.

This module provides retry and rate limiting wrappers, batched list
processing, and pagination helpers built on top of channels.
"""

from .batch import batched_for_each, batched_map
from .paginate import PageRangeInfo, PageResult, paginated
from .fetch_pages import FetchedPage, PageFetch, fetch_pages, for_each_page
from .retry import (
    AsyncRetry,
    ExponentialBackoffOptions,
    RetryInfo,
    create_exponential_backoff_delay,
    get_delay_for_exponential_backoff,
    retry_with_delay,
)
from .rate_limit import RateLimitedFunction, rate_limited

__all__ = [
    "batched_for_each",
    "batched_map",
    "PageRangeInfo",
    "PageResult",
    "paginated",
    "FetchedPage",
    "PageFetch",
    "fetch_pages",
    "for_each_page",
    "AsyncRetry",
    "ExponentialBackoffOptions",
    "RetryInfo",
    "create_exponential_backoff_delay",
    "get_delay_for_exponential_backoff",
    "retry_with_delay",
    "RateLimitedFunction",
    "rate_limited",
]
