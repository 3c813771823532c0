"""Balance recovery cache.

Maps curve points (g^b) to their recovered balance b on top of a
BoundedExpiringStore. The cache enforces its own max_keys ceiling in
addition to the store's capacity; reaching either ceiling stops bulk
admission silently and turns get() into a pass-through.

Usage:
  cache = BalanceCache(1000, encoder=Secp256k1Encoder(), data_dir=Path("data"))
  cache.init(store)
  balance = await cache.get(point, resolver)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from core.errors import CapacityExceededError, NotInitializedError, ValidationError
from core.interfaces import BalanceResolver, PointEncoder
from core.models import CacheStats, LoadReport
from core.store import BoundedExpiringStore
from sources.balance_table import BalanceTableSource

logger = logging.getLogger(__name__)

_MISSING = object()


def _balance_range(start: int, count: int) -> range:
    # [start, start+count); a negative count is simply an empty range
    start = int(start)
    return range(start, start + max(0, int(count)))


class BalanceCache:
    """Point -> balance cache with range population and table loading.

    Lifecycle: construct, then bind a store with init(). Every other
    operation raises NotInitializedError until then. The store is not
    owned: flush() clears it but nothing here closes it.

    Concurrent misses on the same key are not deduplicated; each caller
    runs its resolver and the last set() wins.
    """

    def __init__(
        self,
        max_keys: int,
        *,
        encoder: PointEncoder,
        data_dir: Path,
        delimiter: str = ",",
    ) -> None:
        # 0 is a valid ceiling: nothing is cached and get() passes values through
        self._max_keys = int(max_keys)
        if self._max_keys < 0:
            raise ValidationError(f"max_keys must be >= 0, got {max_keys}")
        self._encoder = encoder
        self._table = BalanceTableSource(data_dir=Path(data_dir), encoder=encoder, delimiter=delimiter)
        self._store: Optional[BoundedExpiringStore] = None

    @property
    def max_keys(self) -> int:
        return self._max_keys

    @property
    def is_ready(self) -> bool:
        return self._store is not None

    def init(self, store: BoundedExpiringStore) -> None:
        self._store = store
        logger.info(
            "Balance cache ready (max_keys=%d, store max_entries=%d, data_dir=%s)",
            self._max_keys,
            store.max_entries,
            self._table.data_dir,
        )

    def _require_store(self) -> BoundedExpiringStore:
        if self._store is None:
            raise NotInitializedError("Balance cache is not initialized; call init() first")
        return self._store

    def _admit(self, store: BoundedExpiringStore, key: str, balance: int) -> bool:
        # The cache ceiling is applied atomically with the store's own capacity
        try:
            store.set(key, balance, limit=self._max_keys)
        except CapacityExceededError:
            return False
        return True

    async def get(self, point: Any, resolver: BalanceResolver) -> int:
        """Return the balance for point, resolving and memoizing on a miss.

        A hit never calls resolver, even for an entry past its TTL that the
        store still returns. If the resolver is cancelled or raises,
        nothing is cached.
        """
        store = self._require_store()
        key = self._encoder.encode(point)

        cached = store.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        # No lock is held while the resolver is pending
        balance = await resolver()

        if not self._admit(store, key, balance):
            logger.info("Cache full; returning balance for %s... uncached", key[:16])
        return balance

    def _populate_range(self, store: BoundedExpiringStore, balances: range) -> int:
        admitted = 0
        for balance in balances:
            key = self._encoder.encode(self._encoder.point_for_balance(balance))
            if not self._admit(store, key, balance):
                logger.info(
                    "Capacity reached: admitted %d of %d balances from %d",
                    admitted,
                    len(balances),
                    balances.start,
                )
                break
            admitted += 1
        return admitted

    async def populate_balance_range(self, start: int, count: int) -> int:
        """Precompute keys for balances [start, start+count) and cache them.

        Returns the number of balances admitted. Admission stops at the
        first ceiling hit; the remainder is skipped without error.
        """
        store = self._require_store()
        balances = _balance_range(start, count)
        # Scalar multiplication is CPU bound; keep it off the event loop
        return await asyncio.to_thread(self._populate_range, store, balances)

    def _delete_range(self, store: BoundedExpiringStore, balances: range) -> int:
        removed = 0
        for balance in balances:
            # Nothing left to delete; skip the remaining scalar multiplications
            if store.size() == 0:
                break
            key = self._encoder.encode(self._encoder.point_for_balance(balance))
            if store.delete(key):
                removed += 1
        return removed

    async def del_balance_range(self, start: int, count: int) -> int:
        store = self._require_store()
        balances = _balance_range(start, count)
        return await asyncio.to_thread(self._delete_range, store, balances)

    def _load_table(self, store: BoundedExpiringStore, name: str) -> LoadReport:
        loaded = 0
        skipped = 0
        truncated = False

        with self._table.open(name) as stream:
            for row in self._table.iter_rows(stream):
                if row is None:
                    skipped += 1
                    continue
                key, balance = row
                if not self._admit(store, key, balance):
                    truncated = True
                    break
                loaded += 1

        return LoadReport(loaded=loaded, skipped=skipped, truncated=truncated)

    async def populate_cache_from_file(self, name: str) -> LoadReport:
        """Bulk load a balance table resolved under data_dir.

        Raises CacheFileNotFoundError if the table cannot be opened and
        MalformedFileError if its first row is not a header (nothing is
        admitted in that case). Corrupt rows are skipped.
        """
        store = self._require_store()
        report = await asyncio.to_thread(self._load_table, store, name)
        logger.info(
            "Loaded %s: %d rows cached, %d corrupt rows skipped%s",
            name,
            report.loaded,
            report.skipped,
            ", stopped at capacity" if report.truncated else "",
        )
        return report

    async def flush(self) -> None:
        self._require_store().flush()

    def get_stats(self) -> CacheStats:
        return self._require_store().stats()
