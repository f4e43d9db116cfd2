"""Mars oracle contract: USD prices and denom decimal exponents."""
from __future__ import annotations

import logging

from ..interfaces.chain import ChainClient
from ..models import AssetDecimals, AssetPrice
from ..protocols.redbank import parser

logger = logging.getLogger(__name__)


class MarsOracle:
    """Query prices and price sources from the Mars oracle contract.

    Decimal exponents are static per denom and cached for the lifetime of
    the oracle; prices are fetched on every call.
    """

    def __init__(self, chain_client: ChainClient, oracle_address: str) -> None:
        self._client = chain_client
        self._address = oracle_address
        self._decimals_cache: dict[str, AssetDecimals] = {}

    async def fetch_price(self, denom: str, height: int | None = None) -> AssetPrice:
        query = {"price": {"denom": denom}}
        response = await self._client.query_contract_smart(
            self._address, query, height=height
        )
        price = parser.parse_price(response, query)
        logger.debug("Price %s: $%s", denom, price.price)
        return price

    async def fetch_decimals(
        self, denom: str, height: int | None = None
    ) -> AssetDecimals:
        if denom in self._decimals_cache:
            return self._decimals_cache[denom]

        query = {"price_source": {"denom": denom}}
        response = await self._client.query_contract_smart(
            self._address, query, height=height
        )
        decimals = parser.parse_decimal_exponent(response, query)
        self._decimals_cache[denom] = decimals
        return decimals
