"""Price oracle protocol — per-denom price and decimals lookup."""
from typing import Protocol

from ..models import AssetDecimals, AssetPrice


class PriceOracle(Protocol):
    """Abstract interface for fetching asset prices and decimal exponents."""

    async def fetch_price(self, denom: str, height: int | None = None) -> AssetPrice: ...

    async def fetch_decimals(
        self, denom: str, height: int | None = None
    ) -> AssetDecimals: ...
