"""MCP tools that populate, trim and inspect the balance cache."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from core.balance_cache import BalanceCache


def register(mcp: FastMCP, *, cache: BalanceCache) -> None:
    @mcp.tool(name="populate_balance_range")
    async def populate_balance_range(start: int = 0, count: int = 0) -> Dict[str, Any]:
        """Precompute and cache balances [start, start+count).

        Stops silently once the cache or store is full; 'admitted' tells
        how many balances were cached.
        """
        admitted = await cache.populate_balance_range(start, count)
        return {"admitted": admitted, "stats": asdict(cache.get_stats())}

    @mcp.tool(name="del_balance_range")
    async def del_balance_range(start: int = 0, count: int = 0) -> Dict[str, Any]:
        """Remove cached balances [start, start+count); absent keys are ignored."""
        removed = await cache.del_balance_range(start, count)
        return {"removed": removed, "stats": asdict(cache.get_stats())}

    @mcp.tool(name="load_balance_file")
    async def load_balance_file(name: str = "") -> Dict[str, Any]:
        """Load a balance table from the configured data directory.

        Params:
          - name: table path relative to BALANCE_DATA_DIR (required).

        Raises:
          CacheFileNotFoundError when the name is empty or the table is
          missing; MalformedFileError when it has no header row.
        """
        report = await cache.populate_cache_from_file(name)
        return {"report": asdict(report), "stats": asdict(cache.get_stats())}

    @mcp.tool(name="flush_cache")
    async def flush_cache() -> Dict[str, Any]:
        await cache.flush()
        return asdict(cache.get_stats())

    @mcp.tool(name="cache_stats")
    async def cache_stats() -> Dict[str, Any]:
        return asdict(cache.get_stats())
