"""Server bootstrap for the balance cache MCP service.

Creates the FastMCP instance, builds the store and the balance cache from
config, wires the recovery client and tools, optionally preloads the
cache and starts the MCP server (stdio transport).
"""

import asyncio
import logging

from mcp.server.fastmcp import FastMCP

from clients.recovery_client import RecoveryClient
from config import (
    BALANCE_DATA_DIR,
    CACHE_DELETE_ON_EXPIRE,
    CACHE_FILE,
    CACHE_MAX_KEYS,
    CACHE_RESET_STATS_ON_FLUSH,
    CACHE_SWEEP_INTERVAL,
    CACHE_TTL_SECONDS,
    HTTP_VERIFY,
    LOG_LEVEL,
    MAX_SEARCH_BALANCE,
    PRELOAD_RANGE_COUNT,
    PRELOAD_RANGE_START,
    RECOVERY_SERVICE_URL,
    RECOVERY_TIMEOUT,
    STORE_MAX_ENTRIES,
    TABLE_DELIMITER,
)
from core.balance_cache import BalanceCache
from core.curve import Secp256k1Encoder
from core.logging_conf import setup_logging
from core.store import BoundedExpiringStore

from tools.manage_cache import register as register_manage_cache
from tools.recover_balance import register as register_recover_balance

logger = logging.getLogger(__name__)

mcp = FastMCP("balance-cache-mcp")
encoder = Secp256k1Encoder()


def build_store() -> BoundedExpiringStore:
    return BoundedExpiringStore(
        ttl_seconds=CACHE_TTL_SECONDS,
        max_entries=STORE_MAX_ENTRIES,
        sweep_interval_seconds=CACHE_SWEEP_INTERVAL,
        delete_on_expire=CACHE_DELETE_ON_EXPIRE,
        reset_stats_on_flush=CACHE_RESET_STATS_ON_FLUSH,
    )


def build_cache(store: BoundedExpiringStore) -> BalanceCache:
    cache = BalanceCache(
        CACHE_MAX_KEYS,
        encoder=encoder,
        data_dir=BALANCE_DATA_DIR,
        delimiter=TABLE_DELIMITER,
    )
    cache.init(store)
    return cache


def register_tools(cache: BalanceCache) -> None:
    recovery_client = None
    if RECOVERY_SERVICE_URL:
        recovery_client = RecoveryClient(
            base_url=RECOVERY_SERVICE_URL,
            timeout=RECOVERY_TIMEOUT,
            verify=HTTP_VERIFY,
        )

    register_recover_balance(
        mcp,
        cache=cache,
        encoder=encoder,
        recovery_client=recovery_client,
        max_search_balance=MAX_SEARCH_BALANCE,
    )
    register_manage_cache(mcp, cache=cache)


store = build_store()
cache = build_cache(store)
register_tools(cache)


async def preload(cache: BalanceCache) -> None:
    if PRELOAD_RANGE_COUNT > 0:
        admitted = await cache.populate_balance_range(PRELOAD_RANGE_START, PRELOAD_RANGE_COUNT)
        logger.info("Preloaded %d balances from %d", admitted, PRELOAD_RANGE_START)
    if CACHE_FILE:
        await cache.populate_cache_from_file(CACHE_FILE)


def main() -> None:
    setup_logging(LOG_LEVEL)
    try:
        asyncio.run(preload(cache))
        mcp.run(transport="stdio")
    finally:
        # Stops the sweeper thread
        store.close()


if __name__ == "__main__":
    main()
