"""Immutable dataclasses returned by the store and the balance cache.

CacheStats is a snapshot of the store counters; LoadReport summarizes a
bulk load from a balance table.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time counters of a BoundedExpiringStore.

    Field groups:
    - Lookups: hits, misses
    - Contents: keys (current entry count)
    - Writes: sets, evictions (expired entries purged)
    """

    hits: int = 0
    misses: int = 0
    keys: int = 0
    sets: int = 0
    evictions: int = 0


@dataclass(frozen=True)
class LoadReport:
    """Outcome of populate_cache_from_file.

    loaded counts admitted rows, skipped counts corrupt rows dropped,
    truncated is True when admission stopped at a capacity ceiling.
    """

    loaded: int = 0
    skipped: int = 0
    truncated: bool = False
