"""Subscriber lookup memoization.

Mental model refresher:
- This is a latency optimization only; resolution is correct without it.
- Keys are built per (environment, subscriber id).
- Misses (`None`) are never stored so a subscriber created mid-batch is
  picked up on the next lookup.
"""

from __future__ import annotations

import os
import time
from typing import Callable

from ..types import Subscriber

DEFAULT_TTL_SECONDS = 30.0


def build_subscriber_key(*, environment_id: str, subscriber_id: str) -> str:
    return f"subscriber:{environment_id}:{subscriber_id}"


class TTLSubscriberCache:
    """In-memory get-or-compute cache with a fixed time-to-live.

    A TTL of zero turns the cache into a pass-through.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Subscriber]] = {}

    @classmethod
    def from_env(cls) -> "TTLSubscriberCache":
        return cls(ttl_seconds=_ttl_seconds_from_env())

    def get_or_compute(
        self, key: str, compute: Callable[[], Subscriber | None]
    ) -> Subscriber | None:
        if self.ttl_seconds == 0:
            return compute()

        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None:
            expires_at, value = entry
            if now < expires_at:
                return value
            self._entries.pop(key, None)

        value = compute()
        if value is not None:
            self._entries[key] = (now + self.ttl_seconds, value)
        return value

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)


def _ttl_seconds_from_env() -> float:
    raw = os.getenv("PREFERENCES_SUBSCRIBER_CACHE_TTL_SECONDS")
    if raw is None or not raw.strip():
        return DEFAULT_TTL_SECONDS
    try:
        ttl_seconds = float(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"Invalid number for PREFERENCES_SUBSCRIBER_CACHE_TTL_SECONDS: {raw!r}"
        ) from exc
    if ttl_seconds < 0:
        raise RuntimeError("PREFERENCES_SUBSCRIBER_CACHE_TTL_SECONDS must be >= 0")
    return ttl_seconds
