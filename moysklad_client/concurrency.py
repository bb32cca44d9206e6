"""
Bounds the number of requests a client keeps in flight.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

# MoySklad rejects more than five parallel requests per account.
MAX_PARALLEL_REQUESTS = 5


def clamp_parallelism(requested: int, ceiling: int = MAX_PARALLEL_REQUESTS) -> int:
    return max(1, min(requested, ceiling))


class ConcurrencyGate:
    """Semaphore with in-flight bookkeeping."""

    def __init__(self, limit: int = MAX_PARALLEL_REQUESTS) -> None:
        self.limit = clamp_parallelism(limit)
        self._semaphore = asyncio.Semaphore(self.limit)
        self._in_flight = 0
        self._peak = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        return self._peak

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        async with self._semaphore:
            self._in_flight += 1
            self._peak = max(self._peak, self._in_flight)
            try:
                yield
            finally:
                self._in_flight -= 1
