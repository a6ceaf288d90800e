"""Time-based cache entries and freshness policies.

A ``CacheEntry`` is an immutable ``(value, cached_at, category)`` record.
``FreshnessPolicy`` decides whether an entry is fresh (usable without a
network call) or merely inside the grace window (usable as a fallback).
Timestamps are seconds since the epoch, as returned by ``time.time``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Mapping, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value with its write time.

    Attributes:
        value: The cached payload
        cached_at: Epoch seconds when the value was fetched
        category: Optional freshness category (e.g. "valid" / "invalid")
    """

    value: T
    cached_at: float
    category: Optional[str] = None

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was written (never negative)."""
        return max(0.0, now - self.cached_at)


@dataclass(frozen=True)
class FreshnessPolicy:
    """TTL rules for cache entries.

    Attributes:
        ttl_seconds: Default time-to-live
        category_ttls: Per-category overrides of ``ttl_seconds``
        grace_seconds: Optional longer window in which a non-fresh entry may
            still serve as a fallback
    """

    ttl_seconds: float
    category_ttls: Mapping[str, float] = field(default_factory=dict)
    grace_seconds: Optional[float] = None

    def ttl_for(self, entry: CacheEntry) -> float:
        if entry.category is not None and entry.category in self.category_ttls:
            return self.category_ttls[entry.category]
        return self.ttl_seconds

    def is_fresh(self, entry: Optional[CacheEntry], now: float) -> bool:
        """Whether ``entry`` may be returned without a network call."""
        if entry is None:
            return False
        return entry.age(now) < self.ttl_for(entry)

    def is_within_grace(self, entry: Optional[CacheEntry], now: float) -> bool:
        """Whether ``entry`` is still usable as a fallback.

        Without a grace window this is the same as ``is_fresh``.
        """
        if entry is None:
            return False
        if self.grace_seconds is None:
            return self.is_fresh(entry, now)
        return entry.age(now) < self.grace_seconds
