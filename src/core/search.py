"""Bounded discrete-log search.

Default resolver when no recovery service is configured: walks balances
0..max_balance and compares encoded points. Runs in a worker thread so
the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Optional

from core.errors import BalanceNotFoundError
from core.interfaces import BalanceResolver, PointEncoder


def search_balance(
    encoder: PointEncoder,
    key: str,
    *,
    max_balance: int,
    stop: Optional[threading.Event] = None,
) -> int:
    for balance in range(0, int(max_balance) + 1):
        if stop is not None and stop.is_set():
            raise BalanceNotFoundError("Balance search was abandoned")
        if encoder.encode(encoder.point_for_balance(balance)) == key:
            return balance
    raise BalanceNotFoundError(f"No balance in [0, {max_balance}] matches the point")


def make_search_resolver(encoder: PointEncoder, point: Any, *, max_balance: int) -> BalanceResolver:
    key = encoder.encode(point)

    async def _resolve() -> int:
        stop = threading.Event()
        try:
            return await asyncio.to_thread(
                search_balance, encoder, key, max_balance=max_balance, stop=stop
            )
        finally:
            # Lets the worker thread exit early if the awaiting task was cancelled
            stop.set()

    return _resolve
