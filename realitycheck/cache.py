"""
Sentiment Reading Cache

In-memory TTL cache for classifier readings.
Key = SHA-256(normalized text + provider). TTL = 1 hour.

Prevents duplicate classifier calls for identical inputs. Only the hash
is retained, never the text itself. Safe for concurrent use via an
asyncio lock.

Usage:
    from realitycheck.cache import ReadingCache
    cache = ReadingCache()
    cached = await cache.get(text, provider)
    if cached is None:
        reading = await classify(...)
        await cache.put(text, provider, reading)
"""

from __future__ import annotations

import asyncio
import hashlib
import time
from typing import Optional

from realitycheck.models import SentimentReading


class ReadingCache:
    """In-memory reading cache with TTL eviction."""

    def __init__(self, ttl_seconds: int = 3600, max_entries: int = 1000):
        self._cache: dict[str, tuple[float, SentimentReading]] = {}
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _make_key(text: str, provider: str = "") -> str:
        raw = f"{text}||{provider}"
        return hashlib.sha256(raw.encode()).hexdigest()

    async def get(self, text: str, provider: str = "") -> Optional[SentimentReading]:
        """Return the cached reading if present and not expired."""
        key = self._make_key(text, provider)
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            ts, reading = entry
            if time.monotonic() - ts > self._ttl:
                del self._cache[key]
                self._misses += 1
                return None

            self._hits += 1
            return reading

    async def put(self, text: str, provider: str, reading: SentimentReading) -> None:
        """Store a reading. Evicts the oldest entry when at capacity."""
        key = self._make_key(text, provider)
        async with self._lock:
            if key not in self._cache and len(self._cache) >= self._max_entries:
                oldest_key = min(self._cache, key=lambda k: self._cache[k][0])
                del self._cache[oldest_key]

            self._cache[key] = (time.monotonic(), reading)

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    @property
    def stats(self) -> dict:
        """Cache hit/miss statistics."""
        total = self._hits + self._misses
        return {
            "entries": len(self._cache),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }
