import types

import pytest

import core.store as store_mod
from core.curve import Secp256k1Encoder


class DummyMCP:
    """Minimal FastMCP stand-in to capture tool registration."""

    def __init__(self) -> None:
        self.tools = {}

    def tool(self, *, name: str):
        def _decorator(fn):
            self.tools[name] = fn
            return fn
        return _decorator


class FakeClock:
    """Manually advanced replacement for the store's monotonic clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def monotonic(self) -> float:
        return self.now


@pytest.fixture
def dummy_mcp():
    return DummyMCP()


@pytest.fixture(scope="session")
def encoder():
    return Secp256k1Encoder()


@pytest.fixture
def clock(monkeypatch):
    # Patch only the store module's view of `time`, not the global module
    c = FakeClock()
    monkeypatch.setattr(store_mod, "time", types.SimpleNamespace(monotonic=c.monotonic))
    return c


@pytest.fixture
def write_table(tmp_path, encoder):
    """Write a balance table under tmp_path and return its name."""

    def _write(name, balances=(), *, header="point,balance", extra_lines=(), delimiter=","):
        lines = [] if header is None else [header]
        for b in balances:
            lines.append(f"{encoder.encode(encoder.point_for_balance(b))}{delimiter}{b}")
        lines.extend(extra_lines)
        (tmp_path / name).write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
        return name

    return _write
