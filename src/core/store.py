"""Bounded in-memory store with a store-wide TTL and a background sweeper.

Entries carry a monotonic insertion timestamp. The store never evicts to
make room: inserting a new key at capacity raises CapacityExceededError.
With delete_on_expire, expired entries are hidden from lookups and purged
by a periodic sweep; without it they stay readable until deleted.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.errors import CapacityExceededError
from core.models import CacheStats

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StoreEntry:
    # Stores value + monotonic insertion time
    value: Any
    inserted_at: float  # time.monotonic()


class BoundedExpiringStore:
    """Thread-safe key/value store with TTL, hard capacity and stats.

    Key behavior:
      - set() on a new key at capacity raises CapacityExceededError;
        overwriting an existing key always succeeds and resets its age.
      - ttl_seconds <= 0 disables expiry.
      - One lock guards the entry map and the counters; the sweeper
        thread takes the same lock.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_entries: int,
        sweep_interval_seconds: float = 0,
        delete_on_expire: bool = True,
        reset_stats_on_flush: bool = True,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._max_entries = max(1, int(max_entries))
        self._sweep_interval = float(sweep_interval_seconds)
        self._delete_on_expire = bool(delete_on_expire)
        self._reset_stats_on_flush = bool(reset_stats_on_flush)

        self._entries: Dict[str, StoreEntry] = {}
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._evictions = 0

        self._closed = threading.Event()
        self._sweeper: Optional[threading.Thread] = None
        if self._delete_on_expire and self._sweep_interval > 0:
            self._sweeper = threading.Thread(
                target=self._run_sweeper,
                name="store-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def delete_on_expire(self) -> bool:
        return self._delete_on_expire

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _is_expired(self, entry: StoreEntry, now: float) -> bool:
        return self._ttl > 0 and now - entry.inserted_at >= self._ttl

    def _live_entry(self, key: str) -> Optional[StoreEntry]:
        # Caller holds the lock. Purges the entry if it expired and expiry is enforced.
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._delete_on_expire and self._is_expired(entry, time.monotonic()):
            del self._entries[key]
            self._evictions += 1
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._misses += 1
                return default
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, *, limit: Optional[int] = None) -> None:
        """Insert or overwrite key.

        limit tightens the capacity for this call only, so a caller can
        enforce its own ceiling atomically with the store's.
        """
        capacity = self._max_entries if limit is None else min(self._max_entries, int(limit))
        with self._lock:
            if key not in self._entries and len(self._entries) >= capacity:
                raise CapacityExceededError(f"Store is full ({capacity} entries)")
            self._entries[key] = StoreEntry(value=value, inserted_at=time.monotonic())
            self._sets += 1

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def flush(self) -> None:
        with self._lock:
            self._entries.clear()
            self._sets = 0
            self._evictions = 0
            if self._reset_stats_on_flush:
                self._hits = 0
                self._misses = 0

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                keys=len(self._entries),
                sets=self._sets,
                evictions=self._evictions,
            )

    def sweep(self) -> int:
        """Purge every expired entry and return how many were removed."""
        if not self._delete_on_expire:
            return 0

        with self._lock:
            now = time.monotonic()
            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for k in expired:
                del self._entries[k]
            self._evictions += len(expired)

        if expired:
            logger.debug("Swept %d expired entries", len(expired))
        return len(expired)

    def _run_sweeper(self) -> None:
        # Event.wait returns True once close() is called
        while not self._closed.wait(self._sweep_interval):
            self.sweep()

    def close(self) -> None:
        self._closed.set()
        sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join()
        self._sweeper = None
