"""
Rate-limited HTTP client for the MoySklad JSON API.

Every request passes through the concurrency gate and the rate limiter
before it is sent. Throttled responses (HTTP 429) are retried in a bounded
loop; every other non-2xx response is converted into a domain exception.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Any

import httpx
import structlog

from moysklad_client.auth import Auth, auth_header
from moysklad_client.concurrency import ConcurrencyGate
from moysklad_client.config import ClientOptions
from moysklad_client.exceptions import (
    ApiResponseError,
    AuthenticationError,
    NotFoundError,
    RateLimitExceeded,
)
from moysklad_client.models import BatchResult, ErrorPayload
from moysklad_client.pagination import BatchPaginator, ChunkStream, FetchPage
from moysklad_client.quota import compute_weight
from moysklad_client.rate_limit import Clock, RateLimiter, RateLimitInfo, SleepStrategy

logger = structlog.get_logger(__name__)


class ApiClient:
    """Request executor shared by every endpoint wrapper."""

    def __init__(
        self,
        auth: Auth,
        *,
        options: ClientOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.time,
        sleep: SleepStrategy = asyncio.sleep,
        now: datetime | None = None,
    ) -> None:
        self.options = options or ClientOptions()
        self.weight = compute_weight(auth, now)
        self.clock = clock
        self.sleep = sleep
        self.rate_limiter = RateLimiter(self.weight, clock=clock, sleep=sleep)
        self.gate = ConcurrencyGate(self.options.parallel_limit)
        self.paginator = BatchPaginator(self.options.batch)

        self._http = httpx.AsyncClient(
            base_url=self.options.base_url,
            headers={
                "Authorization": auth_header(auth),
                "User-Agent": self.options.user_agent,
                "Content-Type": "application/json",
                "Accept": "application/json;charset=utf-8",
                "Accept-Encoding": "gzip",
            },
            timeout=self.options.timeout,
            transport=transport,
        )

    @property
    def threshold(self) -> int:
        return self.rate_limiter.threshold

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
    ) -> httpx.Response:
        """
        Send one logical request, waiting out the quota and retrying on 429.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: Path relative to the base URL, or an absolute ``meta.href``
            params: Query parameters
            json: JSON body

        Returns:
            The successful ``httpx.Response``

        Raises:
            RateLimitExceeded: If the API keeps throttling after every retry
            ApiResponseError: For any other non-2xx response
            httpx.HTTPError: Transport failures, unchanged
        """
        endpoint = path.lstrip("/")
        retry = self.options.retry
        attempt = 0

        while True:
            async with self.gate.slot():
                await self.rate_limiter.wait_for_admission()
                response = await self._http.request(method, endpoint, params=params, json=json)
                await self.rate_limiter.update_from_headers(response.headers)

            if response.status_code != 429:
                break

            now = self.clock()
            info = RateLimitInfo.from_headers(response.headers, now=now)
            hint = info.retry_after
            if hint is None:
                until_reset = info.seconds_until_reset(now)
                if until_reset:
                    hint = until_reset

            if attempt >= retry.max_retries:
                logger.error(
                    "rate_limit_retries_exhausted",
                    method=method,
                    path=endpoint,
                    attempts=attempt + 1,
                )
                payload = _error_payload(response)
                first = payload.first
                raise RateLimitExceeded(
                    f"Rate limit still exceeded after {attempt + 1} attempts.",
                    retry_after=hint,
                    attempts=attempt + 1,
                    code=first.code if first else None,
                    more_info=first.more_info if first else None,
                    errors=_error_entries(payload),
                )

            delay = retry.calculate_delay(attempt, hint)
            logger.warning(
                "rate_limited_retry",
                method=method,
                path=endpoint,
                attempt=attempt + 1,
                delay=delay,
            )
            await self.sleep(delay)
            attempt += 1

        if not response.is_success:
            raise self._convert_error(response)
        return response

    async def get(self, path: str, *, params: Any = None) -> httpx.Response:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json: Any = None, params: Any = None) -> httpx.Response:
        return await self.request("POST", path, params=params, json=json)

    async def put(self, path: str, *, json: Any = None, params: Any = None) -> httpx.Response:
        return await self.request("PUT", path, params=params, json=json)

    async def delete(self, path: str, *, params: Any = None) -> httpx.Response:
        return await self.request("DELETE", path, params=params)

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
    ) -> Any:
        """Perform a request and return the decoded JSON body (``None`` when empty)."""
        response = await self.request(method, path, params=params, json=json)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def batch_get(self, fetch_page: FetchPage, has_expand: bool = False) -> BatchResult[Any]:
        """Fetch every page of a collection; see ``BatchPaginator.batch_get``."""
        return await self.paginator.batch_get(fetch_page, has_expand)

    def get_chunks(self, fetch_page: FetchPage, has_expand: bool = False) -> ChunkStream:
        """Stream a collection group by group; see ``BatchPaginator.get_chunks``."""
        return self.paginator.get_chunks(fetch_page, has_expand)

    def _convert_error(self, response: httpx.Response) -> ApiResponseError:
        payload = _error_payload(response)
        first = payload.first
        message = (
            first.error
            if first is not None and first.error
            else f"HTTP {response.status_code} {response.reason_phrase}".strip()
        )

        error_cls = _error_class_for(response.status_code)
        logger.debug(
            "api_error",
            status=response.status_code,
            code=first.code if first else None,
            url=str(response.request.url),
        )
        return error_cls(
            message,
            status=response.status_code,
            code=first.code if first else None,
            more_info=first.more_info if first else None,
            errors=_error_entries(payload),
        )


def _error_payload(response: httpx.Response) -> ErrorPayload:
    try:
        body: Any = response.json()
    except ValueError:
        body = None
    return ErrorPayload.from_api(body)


def _error_entries(payload: ErrorPayload) -> list[dict[str, Any]]:
    return [error.model_dump(by_alias=True, exclude_none=True) for error in payload.errors]


def _error_class_for(status: int) -> type[ApiResponseError]:
    if status in (401, 403):
        return AuthenticationError
    if status == 404:
        return NotFoundError
    return ApiResponseError

