"""Core protocol and interface definitions.

Defines the PointEncoder protocol the balance cache uses to turn curve
points into lookup keys, and the BalanceResolver callable invoked on a
cache miss.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

# Zero-argument coroutine function returning the recovered balance.
BalanceResolver = Callable[[], Awaitable[int]]


class PointEncoder(Protocol):
    """Contract for the curve group collaborator.

    encode() must be injective and stable across process runs, otherwise
    persisted balance tables cannot be reused.
    """

    def encode(self, point: Any) -> str:
        ...

    def decode(self, text: str) -> Any:
        ...

    def point_for_balance(self, balance: int) -> Any:
        ...
