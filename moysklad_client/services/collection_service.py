"""
Collection reads built on top of the request executor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from moysklad_client.models import BatchResult, ListEnvelope
from moysklad_client.pagination import ChunkStream, FetchPage


class CollectionClient(Protocol):
    """Protocol subset consumed by the service."""

    async def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        ...

    async def batch_get(self, fetch_page: FetchPage, has_expand: bool = False) -> BatchResult[Any]:
        ...

    def get_chunks(self, fetch_page: FetchPage, has_expand: bool = False) -> ChunkStream:
        ...


def _query(params: Mapping[str, Any] | None, **extra: Any) -> dict[str, Any]:
    merged = {**(params or {}), **extra}
    return {key: value for key, value in merged.items() if value is not None}


@dataclass(slots=True)
class CollectionService:
    """
    Reads one collection endpoint such as ``entity/product``.

    Filtering, ordering and search parameters are passed through unchanged.
    ``limit``/``offset`` are owned by the paginator for whole-collection reads.
    """

    client: CollectionClient
    path: str

    async def list_page(self, params: Mapping[str, Any] | None = None) -> ListEnvelope[Any]:
        response = await self.client.request_json("GET", self.path, params=_query(params))
        return ListEnvelope.from_api(response)

    async def first(self, params: Mapping[str, Any] | None = None) -> Any | None:
        page = await self.list_page(_query(params, limit=1, offset=0))
        return page.rows[0] if page.rows else None

    async def by_id(self, entity_id: str, *, expand: str | None = None) -> Any:
        return await self.client.request_json(
            "GET",
            f"{self.path.rstrip('/')}/{entity_id}",
            params=_query(None, expand=expand),
        )

    async def all(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        expand: str | None = None,
    ) -> BatchResult[Any]:
        return await self.client.batch_get(self._page_fetcher(params, expand), bool(expand))

    def chunks(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        expand: str | None = None,
    ) -> ChunkStream:
        return self.client.get_chunks(self._page_fetcher(params, expand), bool(expand))

    def _page_fetcher(self, params: Mapping[str, Any] | None, expand: str | None) -> FetchPage:
        async def fetch_page(limit: int, offset: int) -> Any:
            query = _query(params, expand=expand, limit=limit, offset=offset)
            return await self.client.request_json("GET", self.path, params=query)

        return fetch_page
