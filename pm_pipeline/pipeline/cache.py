"""
In-memory TTL cache for pipeline results

Entries expire individually. A background sweep evicts expired entries on a
fixed interval, and every read re-checks expiry so a stale value is never
returned between sweeps. The cache is an optimization layer only: no method
raises into the caller, failures degrade to "not cached".
"""

import json
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from time import monotonic
from typing import Any, Optional

logger = logging.getLogger(__name__)

ENTRY_OVERHEAD_BYTES = 64


@dataclass
class CacheEntry:
    """Cached value with its absolute expiry (monotonic seconds)"""
    value: Any
    expires_at: float
    size_bytes: int


def estimate_size(key: str, value: Any) -> int:
    """Rough memory footprint of an entry (UTF-16 style, 2 bytes per char)"""
    try:
        serialized = json.dumps(value, default=str)
    except (TypeError, ValueError):
        serialized = repr(value)
    return len(key) * 2 + len(serialized) * 2 + ENTRY_OVERHEAD_BYTES


class TTLCache:
    """Bounded key/value store with per-entry expiration

    Capacity is enforced on insert: when full, the least recently used entry
    (reads refresh recency, writes re-insert at the tail) is evicted first.
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl_ms: int = 300_000,
        cleanup_interval_ms: int = 60_000,
        start_sweeper: bool = True,
    ):
        """Initialize cache

        Args:
            max_size: Maximum number of live entries
            default_ttl_ms: TTL used when set() is called without one
            cleanup_interval_ms: Interval of the background sweep (0 disables it)
            start_sweeper: Start the sweep thread immediately
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self.default_ttl_ms = default_ttl_ms
        self.cleanup_interval_ms = cleanup_interval_ms

        self._lock = threading.RLock()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

        self._destroyed = False
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None
        if start_sweeper and cleanup_interval_ms > 0:
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                name="ttl-cache-sweep",
                daemon=True,
            )
            self._sweeper.start()

        logger.debug(
            f"TTLCache initialized (max_size={max_size}, default_ttl={default_ttl_ms}ms, "
            f"cleanup_interval={cleanup_interval_ms}ms)"
        )

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.expires_at <= monotonic():
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> bool:
        """Store a value, replacing any existing entry for the key

        Returns:
            True if the value was stored
        """
        if self._destroyed or value is None:
            return False

        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        if ttl <= 0:
            logger.debug(f"Refusing to cache {key} with non-positive ttl {ttl}")
            return False

        entry = CacheEntry(
            value=value,
            expires_at=monotonic() + ttl / 1000.0,
            size_bytes=estimate_size(key, value),
        )

        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self.max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Evicted {evicted_key} (cache at capacity {self.max_size})")
            self._entries[key] = entry
        return True

    def has(self, key: str) -> bool:
        """Check for a live entry without touching hit/miss counters"""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.expires_at > monotonic()

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def keys(self) -> list[str]:
        """Keys of all live entries, oldest first"""
        now = monotonic()
        with self._lock:
            return [k for k, e in self._entries.items() if e.expires_at > now]

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def evict_expired(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = monotonic()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.expires_at <= now]
            for key in expired:
                del self._entries[key]
            self._expirations += len(expired)

        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        """Remove all entries immediately"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {count} cache entries")

    def destroy(self) -> None:
        """Stop the background sweep and release all entries (idempotent)"""
        if self._destroyed:
            return
        self._destroyed = True
        self._stop.set()

        sweeper = self._sweeper
        self._sweeper = None
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=1.0)

        with self._lock:
            self._entries.clear()
        logger.debug("TTLCache destroyed")

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def get_stats(self) -> dict:
        """Get cache statistics"""
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0
            memory_bytes = sum(e.size_bytes for e in self._entries.values())

            return {
                'size': len(self._entries),
                'max_size': self.max_size,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': round(hit_rate, 4),
                'hit_rate_percent': round(hit_rate * 100, 1),
                'evictions': self._evictions,
                'expirations': self._expirations,
                'memory_bytes': memory_bytes,
                'memory_mb': round(memory_bytes / 1024 / 1024, 3),
            }

    def _sweep_loop(self) -> None:
        interval = self.cleanup_interval_ms / 1000.0
        while not self._stop.wait(interval):
            try:
                self.evict_expired()
            except Exception:
                logger.warning("Cache sweep failed", exc_info=True)
