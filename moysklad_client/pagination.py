"""
Offset pagination over MoySklad collection endpoints.

The first page is always fetched alone because its ``meta.size`` decides how
many further pages exist. The remaining pages are fetched in groups of at
most ``concurrency_limit`` parallel requests; rows are placed by page index,
never by completion order.

``meta.size`` is read once. If the collection changes on the server while a
batch is running, rows may be duplicated or skipped; this is not reconciled.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Awaitable, Callable

import structlog

from moysklad_client.concurrency import clamp_parallelism
from moysklad_client.config import BatchGetOptions
from moysklad_client.models import BatchResult, ListEnvelope

logger = structlog.get_logger(__name__)

FetchPage = Callable[[int, int], Awaitable[Any]]


def remaining_offsets(total_size: int, limit: int) -> list[int]:
    """Offsets of every page after the first one."""

    if total_size <= limit:
        return []
    pages = -(-(total_size - limit) // limit)
    return [limit + index * limit for index in range(pages)]


class ChunkStream:
    """
    Finite, non-restartable async iterator of ``BatchResult`` chunks.

    Nothing is fetched until the consumer pulls. The first chunk is page 0,
    every following chunk is one group of concurrently fetched pages. Once
    the stream is exhausted, closed, or a page fetch fails, further pulls
    raise ``StopAsyncIteration``.
    """

    def __init__(self, fetch_page: FetchPage, *, limit: int, concurrency_limit: int) -> None:
        self._fetch_page = fetch_page
        self._limit = limit
        self._concurrency_limit = concurrency_limit
        self._context: dict[str, Any] = {}
        self._offsets: deque[int] | None = None
        self._closed = False

    def __aiter__(self) -> "ChunkStream":
        return self

    async def __anext__(self) -> BatchResult[Any]:
        if self._closed:
            raise StopAsyncIteration

        try:
            if self._offsets is None:
                return await self._first_chunk()
            if not self._offsets:
                self._closed = True
                raise StopAsyncIteration
            return await self._next_group(self._offsets)
        except StopAsyncIteration:
            raise
        except BaseException:
            self._closed = True
            raise

    async def aclose(self) -> None:
        self._closed = True
        if self._offsets:
            self._offsets.clear()

    async def _first_chunk(self) -> BatchResult[Any]:
        page = await self._fetch(0)
        self._context = page.context
        self._offsets = deque(remaining_offsets(page.total_size, self._limit))
        logger.debug(
            "pagination_first_page",
            total_size=page.total_size,
            limit=self._limit,
            remaining_pages=len(self._offsets),
        )
        return BatchResult(rows=page.rows, context=page.context)

    async def _next_group(self, offsets: deque[int]) -> BatchResult[Any]:
        size = min(self._concurrency_limit, len(offsets))
        group = [offsets.popleft() for _ in range(size)]

        pages = await asyncio.gather(*(self._fetch(offset) for offset in group))
        rows = [row for page in pages for row in page.rows]
        return BatchResult(rows=rows, context=self._context)

    async def _fetch(self, offset: int) -> ListEnvelope[Any]:
        payload = await self._fetch_page(self._limit, offset)
        return ListEnvelope.from_api(payload)


class BatchPaginator:
    """Turns a single-page fetch function into all rows or a chunk stream."""

    def __init__(self, options: BatchGetOptions | None = None) -> None:
        self.options = options or BatchGetOptions()
        self.concurrency_limit = clamp_parallelism(self.options.concurrency_limit)

    def page_limit(self, has_expand: bool = False) -> int:
        return self.options.expand_limit if has_expand else self.options.limit

    def get_chunks(self, fetch_page: FetchPage, has_expand: bool = False) -> ChunkStream:
        return ChunkStream(
            fetch_page,
            limit=self.page_limit(has_expand),
            concurrency_limit=self.concurrency_limit,
        )

    async def batch_get(self, fetch_page: FetchPage, has_expand: bool = False) -> BatchResult[Any]:
        rows: list[Any] = []
        context: dict[str, Any] | None = None

        async for chunk in self.get_chunks(fetch_page, has_expand):
            if context is None:
                context = chunk.context
            rows.extend(chunk.rows)

        return BatchResult(rows=rows, context=context or {})
