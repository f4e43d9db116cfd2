"""Red Bank adapter. Fetches a borrower's positions and values them in USD."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from ... import money
from ...errors import QueryError
from ...interfaces.chain import ChainClient
from ...interfaces.price_oracle import PriceOracle
from ...models import (
    AssetValue,
    CollateralizationResult,
    CollateralPosition,
    DebtPosition,
)
from . import parser

logger = logging.getLogger(__name__)

P = TypeVar("P", DebtPosition, CollateralPosition)


class RedBankAdapter:
    """Compute a borrower's USD debt, collateral and collateralization ratio."""

    def __init__(
        self,
        chain_client: ChainClient,
        oracle: PriceOracle,
        red_bank_address: str,
        positions_page_size: int = 10,
    ) -> None:
        self._client = chain_client
        self._oracle = oracle
        self._address = red_bank_address
        self._page_size = positions_page_size

    async def _fetch_all(
        self,
        query_name: str,
        wallet: str,
        parse: Callable[[Any, dict[str, Any]], list[P]],
        height: int | None,
    ) -> list[P]:
        """Page through a ``start_after``/``limit`` list query.

        The contract may clamp ``limit``, so only an empty page ends the list.
        """
        positions: list[P] = []
        start_after: str | None = None

        while True:
            args: dict[str, Any] = {"user": wallet, "limit": self._page_size}
            if start_after is not None:
                args["start_after"] = start_after
            query = {query_name: args}

            response = await self._client.query_contract_smart(
                self._address, query, height=height
            )
            page = parse(response, query)
            positions.extend(page)

            if not page:
                return positions
            if page[-1].denom == start_after:
                raise QueryError(f"{query_name} did not advance past {start_after}", query)
            start_after = page[-1].denom

    async def fetch_debts(
        self, wallet: str, height: int | None = None
    ) -> list[DebtPosition]:
        return await self._fetch_all("user_debts", wallet, parser.parse_debts, height)

    async def fetch_collaterals(
        self, wallet: str, height: int | None = None
    ) -> list[CollateralPosition]:
        return await self._fetch_all(
            "user_collaterals", wallet, parser.parse_collaterals, height
        )

    async def _value_position(
        self, position: DebtPosition | CollateralPosition, height: int | None
    ) -> AssetValue:
        price, decimals = await asyncio.gather(
            self._oracle.fetch_price(position.denom, height=height),
            self._oracle.fetch_decimals(position.denom, height=height),
        )
        return AssetValue(
            denom=position.denom,
            amount=money.to_whole_units(position.amount, decimals.decimal_exponent),
            price=price.price,
            usd_value=money.usd_value(
                position.amount, decimals.decimal_exponent, price.price
            ),
        )

    async def value_positions(
        self,
        positions: Sequence[DebtPosition | CollateralPosition],
        height: int | None = None,
    ) -> tuple[AssetValue, ...]:
        """Price every position concurrently."""
        values = await asyncio.gather(
            *(self._value_position(p, height) for p in positions)
        )
        return tuple(values)

    async def aggregate(
        self, wallet: str, height: int | None = None
    ) -> CollateralizationResult:
        """Aggregate all positions of ``wallet``.

        Raises:
            QueryError: a position, price or price-source query failed.
            TransportError: the chain gateway was unreachable.
        """
        debts = await self.fetch_debts(wallet, height)
        collaterals = await self.fetch_collaterals(wallet, height)

        debt_values = await self.value_positions(debts, height)
        collateral_values = await self.value_positions(collaterals, height)

        total_debt = money.total(v.usd_value for v in debt_values)
        total_collateral = money.total(v.usd_value for v in collateral_values)

        result = CollateralizationResult(
            wallet=wallet,
            total_debt_usd=total_debt,
            total_collateral_usd=total_collateral,
            ratio=money.collateralization_ratio(total_collateral, total_debt),
            debts=debt_values,
            collaterals=collateral_values,
        )

        for label, values in (("Debt", debt_values), ("Collateral", collateral_values)):
            for v in values:
                logger.debug(
                    "  %s %s: %s x $%s = $%s",
                    label, v.denom, v.amount, v.price, v.usd_value,
                )

        return result
