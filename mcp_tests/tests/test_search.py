import threading

import pytest

from core.errors import BalanceNotFoundError
from core.search import make_search_resolver, search_balance


def test_search_balance_finds_small_balance(encoder):
    key = encoder.encode(encoder.point_for_balance(37))
    assert search_balance(encoder, key, max_balance=100) == 37


def test_search_balance_finds_zero(encoder):
    assert search_balance(encoder, encoder.encode(None), max_balance=5) == 0


def test_search_balance_exhausts_bound(encoder):
    key = encoder.encode(encoder.point_for_balance(50))
    with pytest.raises(BalanceNotFoundError):
        search_balance(encoder, key, max_balance=10)


def test_search_balance_stops_when_abandoned(encoder):
    stop = threading.Event()
    stop.set()
    key = encoder.encode(encoder.point_for_balance(3))

    with pytest.raises(BalanceNotFoundError):
        search_balance(encoder, key, max_balance=10, stop=stop)


@pytest.mark.asyncio
async def test_make_search_resolver(encoder):
    resolver = make_search_resolver(encoder, encoder.point_for_balance(12), max_balance=20)
    assert await resolver() == 12
