"""In-memory LRU cache of rendered previews.

The cache is bounded three ways at once:

- ``max_entries``: number of stored previews.
- ``max_size_bytes``: total length of the stored previews' HTML.
- ``ttl_seconds``: age of an entry, measured from insertion. Reads do not
  extend an entry's life.

Entries live in one ``OrderedDict`` kept in recency order (least recently
used first) next to a running byte total. Expiry is checked lazily: on
``get`` for the entry being read and on ``set`` for every entry before
capacity eviction runs. There is no background sweeper.

The cache holds no lock. All mutation happens inside synchronous calls, so
on a single event loop no other request observes a half-applied update.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from workbook_preview.preview_document import PreviewResult
from workbook_preview.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_MAX_SIZE_BYTES = 50 * 1024 * 1024
DEFAULT_TTL_SECONDS = 300.0


@dataclass
class CacheEntry:
    """A stored preview with its accounting data."""

    key: str
    value: PreviewResult
    size_bytes: int
    inserted_at: float
    last_accessed_at: float


@dataclass
class CacheStats:
    """Point-in-time view of the cache's occupancy and counters."""

    entries: int
    total_size_bytes: int
    max_entries: int
    max_size_bytes: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int
    expirations: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": self.entries,
            "total_size_bytes": self.total_size_bytes,
            "max_entries": self.max_entries,
            "max_size_bytes": self.max_size_bytes,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
        }


class PreviewCache:
    """Count-, size- and TTL-bounded LRU store of PreviewResult values."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            max_entries: Maximum number of stored previews.
            max_size_bytes: Maximum total HTML length of stored previews.
            ttl_seconds: Lifetime of an entry from insertion.
            clock: Monotonic time source, injectable for tests.
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        if max_size_bytes < 1:
            raise ValueError(
                f"max_size_bytes must be at least 1, got {max_size_bytes}"
            )
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_entries = max_entries
        self.max_size_bytes = max_size_bytes
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._total_size = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        """Whether a live entry exists. Does not touch recency."""
        entry = self._entries.get(key) if isinstance(key, str) else None
        return entry is not None and not self._is_expired(entry, self._clock())

    @property
    def total_size(self) -> int:
        """Sum of ``size_bytes`` over stored entries."""
        return self._total_size

    def get(self, key: str) -> PreviewResult | None:
        """Return the cached preview for ``key``, or None.

        An expired entry is removed and reported as a miss. A hit marks the
        entry as most recently used.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        now = self._clock()
        if self._is_expired(entry, now):
            self._remove(key)
            self._expirations += 1
            self._misses += 1
            logger.debug("Cache entry expired", key=key)
            return None

        entry.last_accessed_at = now
        self._entries.move_to_end(key)
        self._hits += 1
        return entry.value

    def set(self, key: str, value: PreviewResult) -> bool:
        """Store a preview, evicting least recently used entries as needed.

        Storing an existing key replaces its value and size. A preview
        larger than ``max_size_bytes`` on its own is not stored.

        Returns:
            True if the preview was stored.
        """
        size = value.size_bytes
        if key in self._entries:
            self._remove(key)

        if size > self.max_size_bytes:
            logger.warning(
                "Preview too large to cache",
                key=key,
                size_bytes=size,
                max_size_bytes=self.max_size_bytes,
            )
            return False

        now = self._clock()
        self._purge_expired(now)
        while self._entries and (
            len(self._entries) >= self.max_entries
            or self._total_size + size > self.max_size_bytes
        ):
            evicted_key, evicted = self._entries.popitem(last=False)
            self._total_size -= evicted.size_bytes
            self._evictions += 1
            logger.debug(
                "Cache entry evicted", key=evicted_key, size_bytes=evicted.size_bytes
            )

        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            size_bytes=size,
            inserted_at=now,
            last_accessed_at=now,
        )
        self._total_size += size
        return True

    def delete(self, key: str) -> bool:
        """Remove ``key`` if present. Returns whether anything was removed."""
        if key not in self._entries:
            return False
        self._remove(key)
        return True

    def clear(self) -> int:
        """Remove every entry and return how many were removed."""
        removed = len(self._entries)
        self._entries.clear()
        self._total_size = 0
        return removed

    def stats(self) -> CacheStats:
        """Snapshot of occupancy, limits and counters."""
        return CacheStats(
            entries=len(self._entries),
            total_size_bytes=self._total_size,
            max_entries=self.max_entries,
            max_size_bytes=self.max_size_bytes,
            ttl_seconds=self.ttl_seconds,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
        )

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at >= self.ttl_seconds

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._total_size -= entry.size_bytes

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            self._remove(key)
            self._expirations += 1
