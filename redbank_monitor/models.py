"""Frozen records passed between the scanner, the oracle and the aggregator."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class StorageEntry:
    """One raw key/value pair of a contract's store."""

    key: bytes
    value: bytes


@dataclass(frozen=True)
class StatePage:
    """One page of a raw-state query; an empty cursor ends the enumeration."""

    entries: tuple[StorageEntry, ...]
    next_cursor: bytes = b""


@dataclass(frozen=True)
class StorageKey:
    """A decoded cw-storage-plus map key."""

    namespace: str
    parts: tuple[bytes, ...]


@dataclass(frozen=True)
class DebtPosition:
    denom: str
    amount: str
    amount_scaled: str
    uncollateralized: bool = False


@dataclass(frozen=True)
class CollateralPosition:
    denom: str
    amount: str
    amount_scaled: str
    enabled: bool = True


@dataclass(frozen=True)
class AssetPrice:
    """USD price per whole unit of ``denom``."""

    denom: str
    price: Decimal


@dataclass(frozen=True)
class AssetDecimals:
    denom: str
    decimal_exponent: int


@dataclass(frozen=True)
class AssetValue:
    """Single priced position (debt or collateral)."""

    denom: str
    amount: Decimal
    price: Decimal
    usd_value: Decimal


@dataclass(frozen=True)
class CollateralizationResult:
    """Aggregated debt/collateral of one borrower."""

    wallet: str
    total_debt_usd: Decimal
    total_collateral_usd: Decimal
    ratio: Decimal
    debts: tuple[AssetValue, ...] = ()
    collaterals: tuple[AssetValue, ...] = ()

    @property
    def is_infinite(self) -> bool:
        return self.ratio.is_infinite()


@dataclass(frozen=True)
class ScanReport:
    """Summary of one full scan pass."""

    height: int | None
    entries_scanned: int
    borrowers_processed: int
    borrowers_failed: int
