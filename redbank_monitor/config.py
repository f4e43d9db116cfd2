"""Configuration: config.yaml with ${VAR} interpolation, .env loading and validation."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# REST (LCD) gateway URLs, not Tendermint RPC
DEFAULT_RPC_ENDPOINT = "https://lcd.osmosis.zone"
RPC_ENV_VAR = "RPC"

# Upper bound Red Bank applies to `limit` of user_debts and user_collaterals
MAX_POSITIONS_PAGE_SIZE = 10

DEFAULT_RED_BANK_ADDRESS = (
    "osmo1c3ljch9dfw5kf52nfwpxd2zmj2ese7agnx0p9tenkrryasrle5sqf3ftpg"
)
DEFAULT_ORACLE_ADDRESS = (
    "osmo1mhznfr60vjdp2gejhyv2gax9nvyyzhd3z0qcwseyetkfustjauzqycsy2g"
)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = (DEFAULT_RPC_ENDPOINT,)
    rpc_timeout: int = 30


@dataclass(frozen=True)
class ContractsConfig:
    red_bank: str = DEFAULT_RED_BANK_ADDRESS
    oracle: str = DEFAULT_ORACLE_ADDRESS


@dataclass(frozen=True)
class ScanConfig:
    page_size: int = 100
    max_pages: int = 10_000
    positions_page_size: int = 10
    borrower_delay_seconds: float = 1.0
    collateral_namespace: str = "colls"


@dataclass(frozen=True)
class SchedulerConfig:
    poll_interval_seconds: float = 1.0
    scan_on_startup: bool = True


@dataclass(frozen=True)
class QueryConfig:
    pin_height: bool = False
    retries: int = 0
    retry_backoff_seconds: float = 0.5


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    query: QueryConfig = field(default_factory=QueryConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def _as_bool(value: Any, name: str) -> bool:
    """Read a YAML boolean, including strings produced by ${VAR} interpolation."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    endpoints = tuple(e for e in raw.get("rpc_endpoints", []) if e)
    override = os.environ.get(RPC_ENV_VAR, "").strip()
    if override:
        endpoints = (override,)
    elif not endpoints:
        endpoints = (DEFAULT_RPC_ENDPOINT,)
    return ChainConfig(
        rpc_endpoints=endpoints,
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_contracts(raw: dict[str, Any]) -> ContractsConfig:
    return ContractsConfig(
        red_bank=raw.get("red_bank", DEFAULT_RED_BANK_ADDRESS),
        oracle=raw.get("oracle", DEFAULT_ORACLE_ADDRESS),
    )


def _build_scan(raw: dict[str, Any]) -> ScanConfig:
    return ScanConfig(
        page_size=int(raw.get("page_size", 100)),
        max_pages=int(raw.get("max_pages", 10_000)),
        positions_page_size=int(raw.get("positions_page_size", 10)),
        borrower_delay_seconds=float(raw.get("borrower_delay_seconds", 1.0)),
        collateral_namespace=raw.get("collateral_namespace", "colls"),
    )


def _build_scheduler(raw: dict[str, Any]) -> SchedulerConfig:
    return SchedulerConfig(
        poll_interval_seconds=float(raw.get("poll_interval_seconds", 1.0)),
        scan_on_startup=_as_bool(
            raw.get("scan_on_startup", True), "scheduler.scan_on_startup"
        ),
    )


def _build_query(raw: dict[str, Any]) -> QueryConfig:
    return QueryConfig(
        pin_height=_as_bool(raw.get("pin_height", False), "query.pin_height"),
        retries=int(raw.get("retries", 0)),
        retry_backoff_seconds=float(raw.get("retry_backoff_seconds", 0.5)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package directory).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chain=_build_chain(raw.get("chain") or {}),
        contracts=_build_contracts(raw.get("contracts") or {}),
        scan=_build_scan(raw.get("scan") or {}),
        scheduler=_build_scheduler(raw.get("scheduler") or {}),
        query=_build_query(raw.get("query") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")
    if cfg.chain.rpc_timeout <= 0:
        raise ValueError("chain.rpc_timeout must be positive")

    if not cfg.contracts.red_bank:
        raise ValueError("contracts.red_bank has no address")
    if not cfg.contracts.oracle:
        raise ValueError("contracts.oracle has no address")

    if cfg.scan.page_size <= 0:
        raise ValueError("scan.page_size must be positive")
    if cfg.scan.max_pages <= 0:
        raise ValueError("scan.max_pages must be positive")
    if not 0 < cfg.scan.positions_page_size <= MAX_POSITIONS_PAGE_SIZE:
        raise ValueError(
            f"scan.positions_page_size must be between 1 and {MAX_POSITIONS_PAGE_SIZE}"
        )
    if cfg.scan.borrower_delay_seconds < 0:
        raise ValueError("scan.borrower_delay_seconds must not be negative")
    if not cfg.scan.collateral_namespace:
        raise ValueError("scan.collateral_namespace must not be empty")

    if cfg.scheduler.poll_interval_seconds <= 0:
        raise ValueError("scheduler.poll_interval_seconds must be positive")

    if cfg.query.retries < 0:
        raise ValueError("query.retries must not be negative")
    if cfg.query.retry_backoff_seconds < 0:
        raise ValueError("query.retry_backoff_seconds must not be negative")
