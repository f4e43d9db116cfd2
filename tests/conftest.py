"""Shared test fixtures and sample data."""
from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any

import pytest

from redbank_monitor.config import (
    AppConfig,
    ChainConfig,
    ContractsConfig,
    QueryConfig,
    ScanConfig,
    SchedulerConfig,
)
from redbank_monitor.errors import QueryError
from redbank_monitor.models import StatePage, StorageEntry

RED_BANK = "osmo1redbank"
ORACLE = "osmo1oracle"

# 43-character bech32 account addresses, the common osmo1 length
WALLET_A = "osmo1qqqsyqcyq5rqwzqfpg9scrgwpugpzysn7hzdtn"
WALLET_B = "osmo1zg69v7ys40x77y352eufp27daufrg4ncnjqz7q"


# ---------------------------------------------------------------------------
# Storage key builders
# ---------------------------------------------------------------------------


def prefixed(data: bytes) -> bytes:
    return len(data).to_bytes(2, "big") + data


def collateral_key(
    addr: str, denom: str, acc_id: str = "", namespace: str = "colls"
) -> bytes:
    """Key of ``colls: Map<(UserIdKey, denom), Collateral>``."""
    user_id = json.dumps({"addr": addr, "acc_id": acc_id}, separators=(",", ":"))
    return prefixed(namespace.encode()) + prefixed(user_id.encode()) + denom.encode()


def item_key(name: str) -> bytes:
    """Key of a plain ``Item`` (no length prefix)."""
    return name.encode()


def entry(key: bytes, value: bytes = b"{}") -> StorageEntry:
    return StorageEntry(key=key, value=value)


# ---------------------------------------------------------------------------
# In-memory chain
# ---------------------------------------------------------------------------


class FakeChain:
    """In-memory chain client answering the queries the monitor issues."""

    def __init__(
        self,
        pages: list[StatePage] | None = None,
        debts: dict[str, list[dict[str, Any]]] | None = None,
        collaterals: dict[str, list[dict[str, Any]]] | None = None,
        prices: dict[str, str] | None = None,
        decimals: dict[str, int] | None = None,
        heights: list[int] | None = None,
        max_limit: int | None = None,
    ) -> None:
        self.pages = list(pages or [])
        self.debts = debts or {}
        self.collaterals = collaterals or {}
        self.prices = prices or {}
        self.decimals = decimals or {}
        self.heights = list(heights or [])
        self.max_limit = max_limit
        self.state_calls: list[tuple[bytes, int, int | None]] = []
        self.smart_calls: list[tuple[str, dict[str, Any], int | None]] = []

    async def get_height(self) -> int:
        return self.heights.pop(0)

    async def query_all_state(
        self,
        contract_address: str,
        cursor: bytes = b"",
        limit: int = 100,
        height: int | None = None,
    ) -> StatePage:
        self.state_calls.append((cursor, limit, height))
        return self.pages[len(self.state_calls) - 1]

    def _page(
        self, items: list[dict[str, Any]], args: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Answer a list query, clamping ``limit`` like the contract does."""
        start = 0
        if "start_after" in args:
            denoms = [i["denom"] for i in items]
            start = denoms.index(args["start_after"]) + 1
        limit = args.get("limit", 10)
        if self.max_limit is not None:
            limit = min(limit, self.max_limit)
        return items[start:start + limit]

    async def query_contract_smart(
        self, contract_address: str, msg: dict[str, Any], height: int | None = None
    ) -> Any:
        self.smart_calls.append((contract_address, msg, height))
        ((name, args),) = msg.items()

        if name == "user_debts":
            return self._page(self.debts.get(args["user"], []), args)
        if name == "user_collaterals":
            return self._page(self.collaterals.get(args["user"], []), args)
        if name == "price":
            denom = args["denom"]
            if denom not in self.prices:
                raise QueryError(f"price not found for {denom}", msg)
            return {"denom": denom, "price": self.prices[denom]}
        if name == "price_source":
            denom = args["denom"]
            if denom not in self.decimals:
                raise QueryError(f"price source not found for {denom}", msg)
            return {
                "denom": denom,
                "price_source": {
                    "pyth": {
                        "contract_addr": "osmo1pyth",
                        "denom_decimals": self.decimals[denom],
                        "max_confidence": "0.1",
                        "max_deviation": "0.1",
                        "max_staleness": 60,
                        "price_feed_id": "abc",
                    }
                },
            }
        raise QueryError(f"unknown query {name}", msg)


def debt(denom: str, amount: str) -> dict[str, Any]:
    return {
        "denom": denom,
        "amount": amount,
        "amount_scaled": amount + "000000",
        "uncollateralized": False,
    }


def collateral(denom: str, amount: str) -> dict[str, Any]:
    return {
        "denom": denom,
        "amount": amount,
        "amount_scaled": amount + "000000",
        "enabled": True,
    }


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://lcd1.example.com", "https://lcd2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(
        chain=sample_chain_config,
        contracts=ContractsConfig(red_bank=RED_BANK, oracle=ORACLE),
        scan=ScanConfig(
            page_size=100,
            max_pages=50,
            positions_page_size=10,
            borrower_delay_seconds=0.0,
        ),
        scheduler=SchedulerConfig(poll_interval_seconds=0.01),
        query=QueryConfig(),
    )


@pytest.fixture()
def wallet_a_chain() -> FakeChain:
    """walletA: 1 USD of uusd debt against 3 USD of uatom collateral."""
    return FakeChain(
        pages=[StatePage(entries=(entry(collateral_key(WALLET_A, "uatom")),))],
        debts={WALLET_A: [debt("uusd", "1000000")]},
        collaterals={WALLET_A: [collateral("uatom", "2000000")]},
        prices={"uusd": "1.00", "uatom": "1.50"},
        decimals={"uusd": 6, "uatom": 6},
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chain:
      rpc_endpoints: ["https://lcd.example.com"]
      rpc_timeout: 10
    contracts:
      red_bank: "osmo1redbank"
      oracle: "osmo1oracle"
    scan:
      page_size: 50
      max_pages: 200
      positions_page_size: 5
      borrower_delay_seconds: 0.5
      collateral_namespace: colls
    scheduler:
      poll_interval_seconds: 2.0
      scan_on_startup: false
    query:
      pin_height: true
      retries: 2
      retry_backoff_seconds: 0.1
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("RPC", raising=False)
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
