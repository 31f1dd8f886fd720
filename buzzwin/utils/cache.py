"""
TTL caching for slowly changing reads

A CachedValue holds one value together with when it was fetched and how long
it stays fresh. CachedLoader pairs a CachedValue with the coroutine that
refreshes it. Callers own their loaders (one per service instance); there is
no process-wide cache state in this module.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CachedValue(Generic[T]):
    """A value with its fetch time (monotonic seconds) and TTL (seconds)"""
    value: T
    fetched_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.fetched_at >= self.ttl

    def expires_in(self, now: float) -> float:
        return max(0.0, self.ttl - (now - self.fetched_at))


@dataclass
class CachedLoader(Generic[T]):
    """
    Load-through cache for a single value

    Usage:
        catalog = CachedLoader(loader=fetch_catalog, ttl=300, name="ritual_catalog")
        rituals = await catalog.get()
    """
    loader: Callable[[], Awaitable[T]]
    ttl: float
    name: str = "value"
    clock: Callable[[], float] = time.monotonic
    hits: int = 0
    misses: int = 0
    _entry: Optional[CachedValue[T]] = field(default=None, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def entry(self) -> Optional[CachedValue[T]]:
        return self._entry

    async def get(self) -> T:
        """Return the cached value, reloading it if missing or expired"""
        now = self.clock()
        entry = self._entry
        if entry is not None and not entry.is_expired(now):
            self.hits += 1
            logger.debug(f"Cache HIT: {self.name} (expires in {int(entry.expires_in(now))}s)")
            return entry.value

        async with self._lock:
            # Another task may have refreshed while we waited
            now = self.clock()
            entry = self._entry
            if entry is not None and not entry.is_expired(now):
                self.hits += 1
                return entry.value

            self.misses += 1
            logger.debug(f"Cache MISS: {self.name}")
            value = await self.loader()
            self._entry = CachedValue(value=value, fetched_at=self.clock(), ttl=self.ttl)
            logger.debug(f"Cache STORED: {self.name} (TTL: {self.ttl}s)")
            return value

    def invalidate(self) -> None:
        """Drop the cached value so the next get() reloads it"""
        if self._entry is not None:
            logger.info(f"Invalidated cache: {self.name}")
        self._entry = None

    def stats(self) -> dict[str, Any]:
        total = self.hits + self.misses
        return {
            "name": self.name,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate_percent": round(self.hits / total * 100, 2) if total else 0,
            "cached": self._entry is not None,
        }
