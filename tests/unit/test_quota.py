"""
Unit tests for request weights and window thresholds.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from moysklad_client.auth import BasicAuth, TokenAuth
from moysklad_client.quota import WINDOW_CAPACITY, compute_threshold, compute_weight

BASIC = BasicAuth(login="admin@shop", password="secret")


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


# ============================================================================
# compute_weight
# ============================================================================


@pytest.mark.parametrize(
    "now",
    [_utc(2025, 1, 1), _utc(2026, 5, 12), _utc(2026, 12, 1), _utc(2030, 1, 1)],
)
def test_token_requests_always_weigh_one(now: datetime) -> None:
    """Token authentication is never subject to the weight schedule."""
    assert compute_weight(TokenAuth(token="abc"), now) == 1


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (_utc(2026, 5, 11), 1),
        (_utc(2026, 5, 12), 2),
        (_utc(2026, 8, 31), 2),
        (_utc(2026, 9, 1), 3),
        (_utc(2026, 11, 30), 3),
        (_utc(2026, 12, 1), 4),
        (_utc(2027, 6, 1), 4),
    ],
)
def test_basic_auth_weight_follows_schedule(now: datetime, expected: int) -> None:
    """Login/password requests get heavier on each schedule boundary."""
    assert compute_weight(BASIC, now) == expected


def test_naive_datetime_is_treated_as_utc() -> None:
    assert compute_weight(BASIC, datetime(2026, 9, 1)) == 3


def test_weight_defaults_to_current_time() -> None:
    assert compute_weight(BASIC) >= 1


# ============================================================================
# compute_threshold
# ============================================================================


@pytest.mark.parametrize(("weight", "expected"), [(1, 45), (2, 22), (3, 15), (4, 11)])
def test_threshold_is_capacity_floor_divided_by_weight(weight: int, expected: int) -> None:
    assert compute_threshold(weight) == expected
    assert compute_threshold(weight) == WINDOW_CAPACITY // weight


def test_threshold_uses_custom_capacity() -> None:
    assert compute_threshold(2, capacity=30) == 15


@pytest.mark.parametrize("weight", [0, -1])
def test_threshold_rejects_non_positive_weight(weight: int) -> None:
    with pytest.raises(ValueError):
        compute_threshold(weight)
