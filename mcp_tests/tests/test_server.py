import sys
import types
import uuid
import importlib.util
from pathlib import Path

import pytest


def _find_server_py() -> Path:
    root = Path(__file__).resolve().parents[2]
    candidates = [
        root / "server.py",
        root / "server" / "server.py",
        root / "src" / "server" / "server.py",
    ]
    for p in candidates:
        if p.exists():
            return p
    raise FileNotFoundError(f"Could not find server.py. Tried: {candidates}")


def _install_fake_modules(monkeypatch, captures: dict, data_dir: Path, **config_overrides):
    # ---- Fake mcp.server.fastmcp.FastMCP ----
    mcp_mod = types.ModuleType("mcp")
    mcp_server_mod = types.ModuleType("mcp.server")
    fastmcp_mod = types.ModuleType("mcp.server.fastmcp")

    class DummyFastMCP:
        def __init__(self, name: str):
            captures["fastmcp_name"] = name
            captures["mcp_instance"] = self
            self.run_calls = []

        def run(self, *, transport: str):
            self.run_calls.append({"transport": transport})
            captures["run_calls"] = list(self.run_calls)
            if captures.get("run_error") is not None:
                raise captures["run_error"]

    fastmcp_mod.FastMCP = DummyFastMCP

    mcp_mod.__path__ = []
    mcp_server_mod.__path__ = []

    monkeypatch.setitem(sys.modules, "mcp", mcp_mod)
    monkeypatch.setitem(sys.modules, "mcp.server", mcp_server_mod)
    monkeypatch.setitem(sys.modules, "mcp.server.fastmcp", fastmcp_mod)

    # ---- Fake config ----
    config_mod = types.ModuleType("config")
    settings = {
        "BALANCE_DATA_DIR": data_dir,
        "TABLE_DELIMITER": ",",
        "CACHE_MAX_KEYS": 10,
        "STORE_MAX_ENTRIES": 15,
        "CACHE_TTL_SECONDS": 60.0,
        "CACHE_SWEEP_INTERVAL": 0.0,
        "CACHE_DELETE_ON_EXPIRE": True,
        "CACHE_RESET_STATS_ON_FLUSH": True,
        "CACHE_FILE": "",
        "PRELOAD_RANGE_START": 0,
        "PRELOAD_RANGE_COUNT": 0,
        "RECOVERY_SERVICE_URL": "https://dlog.example",
        "RECOVERY_TIMEOUT": 12.3,
        "MAX_SEARCH_BALANCE": 77,
        "HTTP_VERIFY": True,
        "LOG_LEVEL": "DEBUG",
    }
    settings.update(config_overrides)
    for k, v in settings.items():
        setattr(config_mod, k, v)
    monkeypatch.setitem(sys.modules, "config", config_mod)

    # ---- Fake logging setup ----
    logging_mod = types.ModuleType("core.logging_conf")

    def setup_logging(level="INFO"):
        captures["log_level"] = level

    logging_mod.setup_logging = setup_logging
    monkeypatch.setitem(sys.modules, "core.logging_conf", logging_mod)

    # ---- Fake clients ----
    clients_pkg = types.ModuleType("clients")
    clients_pkg.__path__ = []
    monkeypatch.setitem(sys.modules, "clients", clients_pkg)

    recovery_client_mod = types.ModuleType("clients.recovery_client")

    class FakeRecoveryClient:
        def __init__(self, *, base_url: str, timeout: float, verify: bool = False):
            captures["recovery_client_ctor_calls"] = captures.get("recovery_client_ctor_calls", []) + [
                {"base_url": base_url, "timeout": timeout, "verify": verify}
            ]
            captures["recovery_client_instance"] = self

    recovery_client_mod.RecoveryClient = FakeRecoveryClient
    monkeypatch.setitem(sys.modules, "clients.recovery_client", recovery_client_mod)

    # ---- Fake tools ----
    tools_pkg = types.ModuleType("tools")
    tools_pkg.__path__ = []
    monkeypatch.setitem(sys.modules, "tools", tools_pkg)

    tools_recover_mod = types.ModuleType("tools.recover_balance")
    tools_manage_mod = types.ModuleType("tools.manage_cache")

    def register_recover_balance(mcp, *, cache, encoder, recovery_client=None, max_search_balance=0):
        captures["register_recover_balance_calls"] = captures.get("register_recover_balance_calls", []) + [
            {
                "mcp": mcp,
                "cache": cache,
                "encoder": encoder,
                "recovery_client": recovery_client,
                "max_search_balance": max_search_balance,
            }
        ]

    def register_manage_cache(mcp, *, cache):
        captures["register_manage_cache_calls"] = captures.get("register_manage_cache_calls", []) + [
            {"mcp": mcp, "cache": cache}
        ]

    tools_recover_mod.register = register_recover_balance
    tools_manage_mod.register = register_manage_cache

    monkeypatch.setitem(sys.modules, "tools.recover_balance", tools_recover_mod)
    monkeypatch.setitem(sys.modules, "tools.manage_cache", tools_manage_mod)


def _load_server_module(monkeypatch, captures: dict, data_dir: Path, **config_overrides):
    _install_fake_modules(monkeypatch, captures, data_dir, **config_overrides)

    server_path = _find_server_py()
    mod_name = f"server_under_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, server_path)
    assert spec and spec.loader

    module = importlib.util.module_from_spec(spec)
    monkeypatch.setitem(sys.modules, mod_name, module)
    spec.loader.exec_module(module)
    return module


def test_server_register_all_and_di(monkeypatch, tmp_path):
    captures = {}
    module = _load_server_module(monkeypatch, captures, tmp_path)

    assert captures["fastmcp_name"] == "balance-cache-mcp"
    mcp = captures["mcp_instance"]

    # Cache is built and bound to a store from config
    assert module.cache.is_ready
    assert module.cache.max_keys == 10

    # Recovery client is created once from config
    assert captures["recovery_client_ctor_calls"] == [
        {"base_url": "https://dlog.example", "timeout": 12.3, "verify": True}
    ]

    recover_calls = captures["register_recover_balance_calls"]
    manage_calls = captures["register_manage_cache_calls"]
    assert len(recover_calls) == 1
    assert len(manage_calls) == 1

    # Both tool groups share the same cache instance
    assert recover_calls[0]["cache"] is module.cache
    assert manage_calls[0]["cache"] is module.cache
    assert recover_calls[0]["mcp"] is mcp
    assert recover_calls[0]["encoder"] is module.encoder
    assert recover_calls[0]["recovery_client"] is captures["recovery_client_instance"]
    assert recover_calls[0]["max_search_balance"] == 77

    assert module.cache._store is module.store
    assert not module.store.closed

    module.main()
    assert captures["log_level"] == "DEBUG"
    assert captures["run_calls"] == [{"transport": "stdio"}]
    assert module.store.closed


def test_server_without_recovery_url_uses_local_search(monkeypatch, tmp_path):
    captures = {}
    _load_server_module(monkeypatch, captures, tmp_path, RECOVERY_SERVICE_URL="")

    assert "recovery_client_ctor_calls" not in captures
    assert captures["register_recover_balance_calls"][0]["recovery_client"] is None


def test_server_main_preloads_range_and_file(monkeypatch, tmp_path, write_table):
    name = write_table("preload.csv", range(100, 103))
    captures = {}
    module = _load_server_module(
        monkeypatch,
        captures,
        tmp_path,
        PRELOAD_RANGE_START=0,
        PRELOAD_RANGE_COUNT=4,
        CACHE_FILE=name,
    )

    module.main()

    assert module.cache.get_stats().keys == 7
    assert captures["run_calls"] == [{"transport": "stdio"}]


def test_server_main_closes_store_when_run_fails(monkeypatch, tmp_path):
    captures = {"run_error": KeyboardInterrupt()}
    module = _load_server_module(monkeypatch, captures, tmp_path, CACHE_SWEEP_INTERVAL=0.05)
    sweeper = module.store._sweeper
    assert sweeper is not None and sweeper.is_alive()

    with pytest.raises(KeyboardInterrupt):
        module.main()

    assert module.store.closed
    assert not sweeper.is_alive()
