"""MCP tool that recovers a plaintext balance from an encoded curve point.

Registers 'recover_balance', which serves the point from the balance
cache and, on a miss, falls back to the remote recovery service (when
configured) or to a bounded local search.
"""

from __future__ import annotations

from typing import Optional

from mcp.server.fastmcp import FastMCP

from clients.recovery_client import RecoveryClient
from config import MAX_SEARCH_BALANCE
from core.balance_cache import BalanceCache
from core.errors import ValidationError
from core.interfaces import PointEncoder
from core.search import make_search_resolver


def register(
    mcp: FastMCP,
    *,
    cache: BalanceCache,
    encoder: PointEncoder,
    recovery_client: Optional[RecoveryClient] = None,
    max_search_balance: int = MAX_SEARCH_BALANCE,
) -> None:
    @mcp.tool(name="recover_balance")
    async def recover_balance(point: str) -> int:
        """Return the balance b for a point g^b.

        Params:
          - point: hex SEC1 encoding of the curve point (compressed or
            uncompressed; "00" is the point at infinity, balance 0).

        Returns:
          The recovered balance. Cached results are returned without
          searching.

        Raises:
          ValidationError for an empty or invalid point; BalanceNotFoundError
          when the local search bound is exhausted; ExternalServiceError when
          the recovery service fails.
        """
        text = (point or "").strip()
        if not text:
            raise ValidationError("Missing point")

        try:
            decoded = encoder.decode(text)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid curve point: {e}") from e

        if recovery_client is not None:
            resolver = recovery_client.resolver_for(encoder.encode(decoded))
        else:
            resolver = make_search_resolver(encoder, decoded, max_balance=max_search_balance)

        return await cache.get(decoded, resolver)
