"""In-process cache of extracted job content, keyed by source URL.

Rules:
  - Entries older than max_age are absent; get() removes them on read.
  - At capacity, set() evicts the entry with the oldest write timestamp.
  - Check-capacity, evict, and insert happen under one lock.
  - cleanup() never raises.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable

from src.core.config import CacheConfig
from src.core.schemas import CacheEntry, CacheStats

logger = logging.getLogger(__name__)


class ResultCache:
    """Bounded, expiring URL → text store."""

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, url: str) -> str | None:
        """Return cached text for url, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._entries[url]
                logger.debug("Cache entry expired: %s", url)
                return None
            return entry.content

    def set(self, url: str, content: str) -> None:
        """Store content for url, replacing any existing entry."""
        entry = CacheEntry(url=url, content=content, stored_at=self._clock())
        with self._lock:
            if url not in self._entries and len(self._entries) >= self._config.max_entries:
                oldest = min(self._entries.values(), key=lambda e: e.stored_at)
                del self._entries[oldest.url]
                logger.debug("Cache full, evicted %s", oldest.url)
            self._entries[url] = entry

    def cleanup(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        try:
            with self._lock:
                expired = [url for url, e in self._entries.items() if self._is_expired(e)]
                for url in expired:
                    del self._entries[url]
        except Exception:
            logger.warning("Cache cleanup failed", exc_info=True)
            return 0
        if expired:
            logger.info("Cache cleanup removed %d expired entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            max_entries=self._config.max_entries,
            max_age_s=self._config.max_age_s,
        )

    async def run_periodic_cleanup(self, interval_s: float | None = None) -> None:
        """Call cleanup() forever on a fixed interval. Cancel to stop."""
        interval = interval_s if interval_s is not None else self._config.cleanup_interval_s
        while True:
            await asyncio.sleep(interval)
            self.cleanup()

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.stored_at > self._config.max_age_s
