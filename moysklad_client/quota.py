"""
Request weight and per-window thresholds for the MoySklad quota.

The server grants ``WINDOW_CAPACITY`` weight units every ``WINDOW_SECONDS``.
Requests made with a token always cost one unit; requests authenticated with
login/password get heavier on a published schedule.
"""

from __future__ import annotations

from datetime import datetime, timezone

from moysklad_client.auth import Auth, TokenAuth

WINDOW_SECONDS = 3
WINDOW_CAPACITY = 45

# Ordered newest first: the first boundary ``now`` has reached wins.
WEIGHT_SCHEDULE: tuple[tuple[datetime, int], ...] = (
    (datetime(2026, 12, 1, tzinfo=timezone.utc), 4),
    (datetime(2026, 9, 1, tzinfo=timezone.utc), 3),
    (datetime(2026, 5, 12, tzinfo=timezone.utc), 2),
)


def compute_weight(auth: Auth, now: datetime | None = None) -> int:
    """Return the weight, in quota units, of one request made with ``auth``."""

    if isinstance(auth, TokenAuth):
        return 1

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    for effective_from, weight in WEIGHT_SCHEDULE:
        if current >= effective_from:
            return weight
    return 1


def compute_threshold(weight: int, capacity: int = WINDOW_CAPACITY) -> int:
    """Number of requests of ``weight`` that fit into one window."""

    if weight < 1:
        raise ValueError("weight must be a positive integer")
    return capacity // weight
