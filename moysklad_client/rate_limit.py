"""
Rate limiting utilities and retry/backoff helpers.

``RateLimiter`` gates outgoing requests against the weighted per-window
quota. Server headers are the source of truth whenever they are present;
without them the limiter never blocks and throttling is handled reactively
by the 429 retry loop in ``ApiClient``.
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Protocol

import structlog

from moysklad_client.quota import WINDOW_CAPACITY, WINDOW_SECONDS, compute_threshold

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


class SleepStrategy(Protocol):
    """Strategy responsible for sleeping/backing off."""

    async def __call__(self, seconds: float) -> None:
        raise NotImplementedError


def _parse_number(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except (AttributeError, TypeError, ValueError):
        return None


def _parse_int(value: str | None) -> int | None:
    number = _parse_number(value)
    return int(number) if number is not None else None


@dataclass(slots=True)
class RateLimitInfo:
    """Rate limit metadata parsed from MoySklad response headers."""

    limit: int | None = None
    remaining: int | None = None
    reset_at: float | None = None
    retry_after: float | None = None

    @classmethod
    def from_headers(
        cls,
        headers: Mapping[str, str],
        *,
        now: float | None = None,
    ) -> "RateLimitInfo":
        """
        Parse headers case-insensitively.

        ``X-RateLimit-Reset`` is an epoch timestamp in seconds while the
        ``X-Lognex-*`` variants are relative durations in milliseconds.
        """

        normalized = {key.lower(): value for key, value in headers.items()}
        current = time.time() if now is None else now

        reset_at = _parse_number(normalized.get("x-ratelimit-reset"))
        if reset_at is None:
            reset_in_ms = _parse_number(normalized.get("x-lognex-reset"))
            if reset_in_ms is not None:
                reset_at = current + reset_in_ms / 1000

        retry_after = _parse_number(normalized.get("retry-after"))
        if retry_after is None:
            retry_in_ms = _parse_number(normalized.get("x-lognex-retry-after"))
            if retry_in_ms is not None:
                retry_after = retry_in_ms / 1000

        return cls(
            limit=_parse_int(normalized.get("x-ratelimit-limit")),
            remaining=_parse_int(normalized.get("x-ratelimit-remaining")),
            reset_at=reset_at,
            retry_after=retry_after,
        )

    def is_complete(self) -> bool:
        return None not in (self.limit, self.remaining, self.reset_at)

    def seconds_until_reset(self, now: float | None = None) -> float | None:
        if self.reset_at is None:
            return None
        current = time.time() if now is None else now
        return max(self.reset_at - current, 0.0)


@dataclass(slots=True)
class RetryConfig:
    """
    Retry policy for throttled (HTTP 429) responses.

    The delay follows the server's retry hint when one is given, otherwise
    ``default_delay`` (slightly longer than one window). Every consecutive
    throttle adds ``backoff_step`` seconds, capped at ``max_delay``.
    """

    max_retries: int = 5
    default_delay: float = 3.1
    backoff_step: float = 0.5
    max_delay: float = 30.0

    def calculate_delay(self, attempt: int, retry_after: float | None = None) -> float:
        base = retry_after if retry_after is not None and retry_after >= 0 else self.default_delay
        return min(base + self.backoff_step * attempt, self.max_delay)


@dataclass(slots=True)
class RateLimiterState:
    """Window accounting shared by every request of one client."""

    window_start: float | None = None
    weight_used: int = 0
    capacity: int = WINDOW_CAPACITY


class RateLimiter:
    """Admission control against the weighted per-window quota."""

    def __init__(
        self,
        weight: int = 1,
        *,
        capacity: int = WINDOW_CAPACITY,
        window_seconds: float = WINDOW_SECONDS,
        safety_margin_ms: int = 100,
        clock: Clock = time.time,
        sleep: SleepStrategy = asyncio.sleep,
    ) -> None:
        if weight < 1:
            raise ValueError("weight must be a positive integer")
        self.weight = weight
        self.window_seconds = window_seconds
        self.safety_margin_ms = safety_margin_ms
        self.clock = clock
        self.sleep = sleep
        self._state = RateLimiterState(capacity=capacity)
        self._lock = asyncio.Lock()

    @property
    def threshold(self) -> int:
        return compute_threshold(self.weight, self._state.capacity)

    def snapshot(self) -> RateLimiterState:
        return replace(self._state)

    def record_response_headers(
        self,
        limit: int,
        remaining: int,
        reset_epoch_seconds: float,
    ) -> None:
        """Synchronise local accounting with the server's view of the window."""

        state = self._state
        if limit > 0:
            state.capacity = limit

        now = self.clock()
        if now >= reset_epoch_seconds:
            state.weight_used = 0
            state.window_start = reset_epoch_seconds
            return

        state.weight_used = max(limit - remaining, 0)
        state.window_start = reset_epoch_seconds - self.window_seconds

    async def update_from_headers(self, headers: Mapping[str, str]) -> RateLimitInfo:
        info = RateLimitInfo.from_headers(headers, now=self.clock())
        if not info.is_complete():
            return info

        async with self._lock:
            self.record_response_headers(info.limit, info.remaining, info.reset_at)
        return info

    def admission_delay_ms(self) -> int:
        """Milliseconds to wait before the next request may be sent."""

        now = self.clock()
        self._roll_window(now)

        state = self._state
        if state.window_start is None:
            return 0

        # A fresh window always admits one request, whatever the threshold.
        if state.weight_used == 0:
            return 0
        requests_left = self.threshold - state.weight_used // self.weight
        if requests_left > 1:
            return 0

        window_end = state.window_start + self.window_seconds
        return max(math.ceil((window_end - now) * 1000), 0) + self.safety_margin_ms

    async def wait_for_admission(self) -> float:
        """Block until the quota admits one more request; returns seconds slept."""

        waited = 0.0
        while True:
            async with self._lock:
                delay_ms = self.admission_delay_ms()
                if delay_ms <= 0:
                    if self._state.window_start is not None:
                        self._state.weight_used += self.weight
                    return waited
                weight_used = self._state.weight_used

            delay = delay_ms / 1000
            logger.debug(
                "rate_limit_wait",
                delay=delay,
                weight_used=weight_used,
                threshold=self.threshold,
            )
            await self.sleep(delay)
            waited += delay

    def _roll_window(self, now: float) -> None:
        state = self._state
        if state.window_start is None:
            return

        elapsed = now - state.window_start
        if elapsed < self.window_seconds:
            return

        windows_passed = math.floor(elapsed / self.window_seconds)
        state.window_start += windows_passed * self.window_seconds
        state.weight_used = 0
