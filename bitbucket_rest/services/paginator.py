"""Walks every page of a paged Bitbucket endpoint."""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

import structlog

from bitbucket_rest.schemas.page import Limit, Page

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def iterate(fetch: Callable[[Limit], Awaitable[Page[T]]], page_size: int = 25) -> AsyncIterator[T]:
    """Yield every item across all pages, starting from the first window.

    ``fetch`` is any accessor bound to its path arguments, e.g.
    ``lambda limit: client.get_project_repositories("PRJ", limit)``.
    """
    limit: Limit | None = Limit.first(page_size)
    while limit is not None:
        page = await fetch(limit)
        for item in page.values:
            yield item
        if not page.is_last_page and page.next_page_start is None:
            logger.warning("page_missing_next_start", start=page.start, size=page.size)
            return
        next_limit = page.next_limit()
        if next_limit is not None and next_limit.start <= limit.start:
            logger.warning("page_start_not_advancing", start=limit.start, next_page_start=next_limit.start)
            return
        limit = next_limit


async def collect(
    fetch: Callable[[Limit], Awaitable[Page[T]]],
    page_size: int = 25,
    max_items: int | None = None,
) -> list[T]:
    """Gather the items from ``iterate`` into a list, stopping after ``max_items``."""
    items: list[T] = []
    if max_items is not None and max_items <= 0:
        return items
    async for item in iterate(fetch, page_size):
        items.append(item)
        if max_items is not None and len(items) >= max_items:
            break
    return items
