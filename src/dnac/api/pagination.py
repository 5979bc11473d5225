"""Offset/limit pagination over controller list endpoints.

The controller's list endpoints are 1-based (`offset=1` is the first item)
and do not report a total count. `fetch_all` walks pages with a fixed page
size until the controller signals exhaustion:

    - a page with 0 or 1 items ends the walk (a lone tail item is kept
      only if its identifier has not been seen yet)
    - a page shorter than the limit ends the walk after being appended
    - otherwise the page is appended and the offset advances by the limit

Example:
    async def list_devices(filter, pagination):
        ...

    devices = await fetch_all(list_devices, DeviceFilter(family=...))
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from operator import attrgetter
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .exceptions import TimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F")

START_OFFSET = 1
PAGE_SIZE = 500

ListFn = Callable[[Optional[F], "Pagination"], Awaitable[list[T]]]


@dataclass(frozen=True)
class Pagination:
    """One page request: 1-based offset and page size."""
    offset: int = START_OFFSET
    limit: int = PAGE_SIZE

    def __post_init__(self):
        if self.offset < 1:
            raise ValueError(f"offset must be >= 1, got {self.offset}")
        if self.limit < 1:
            raise ValueError(f"limit must be > 0, got {self.limit}")

    @classmethod
    def builder(cls) -> "PaginationBuilder":
        return PaginationBuilder()

    def next_page(self) -> "Pagination":
        return replace(self, offset=self.offset + self.limit)

    def to_params(self) -> dict[str, str]:
        return {"offset": str(self.offset), "limit": str(self.limit)}


class PaginationBuilder:
    """Fluent builder for Pagination (defaults: offset=1, limit=500)."""

    def __init__(self):
        self._offset = START_OFFSET
        self._limit = PAGE_SIZE

    def with_offset(self, offset: int) -> "PaginationBuilder":
        self._offset = offset
        return self

    def with_limit(self, limit: int) -> "PaginationBuilder":
        self._limit = limit
        return self

    def build(self) -> Pagination:
        return Pagination(offset=self._offset, limit=self._limit)


async def _walk_pages(
    list_fn: ListFn,
    filter: Optional[Any],
    limit: int,
    key: Callable[[T], Any],
) -> list[T]:
    pagination = Pagination.builder().with_limit(limit).build()
    items: list[T] = []
    seen: set = set()
    pages_fetched = 0

    while True:
        logger.debug(
            f"Fetching page with offset: {pagination.offset} and limit: {pagination.limit}"
        )
        page = await list_fn(filter, pagination)
        pages_fetched += 1

        # 0 or 1 items: the controller has nothing more to give
        if len(page) <= 1:
            if page:
                tail = page[0]
                if key(tail) not in seen:
                    items.append(tail)
                else:
                    logger.debug(f"Dropping repeated tail item {key(tail)!r}")
            break

        items.extend(page)
        seen.update(key(item) for item in page)

        if len(page) < pagination.limit:
            break

        pagination = pagination.next_page()

    logger.info(f"Pagination complete: {len(items):,} items in {pages_fetched} pages")
    return items


async def fetch_all(
    list_fn: ListFn,
    filter: Optional[Any] = None,
    *,
    limit: int = PAGE_SIZE,
    key: Callable[[T], Any] = attrgetter("id"),
    timeout: Optional[float] = None,
) -> list[T]:
    """Fetch a whole collection through a single-page list function.

    Pages are requested strictly one after another. Cancelling the calling
    task aborts the walk at the current request.

    Args:
        list_fn: `async (filter, pagination) -> list` fetching exactly one page
        filter: Passed through to list_fn unchanged
        limit: Page size
        key: Identity of an item, used to de-duplicate the tail item
        timeout: Optional deadline in seconds for the whole walk

    Returns:
        All items in controller order

    Raises:
        TimeoutError: If the deadline passes before the walk finishes
    """
    if timeout is None:
        return await _walk_pages(list_fn, filter, limit, key)

    try:
        return await asyncio.wait_for(_walk_pages(list_fn, filter, limit, key), timeout)
    except asyncio.TimeoutError as e:
        raise TimeoutError(
            f"Pagination did not finish within {timeout} seconds",
            timeout_seconds=timeout,
            cause=e,
        )


__all__ = [
    "PAGE_SIZE",
    "START_OFFSET",
    "Pagination",
    "PaginationBuilder",
    "fetch_all",
]
