"""Pure parsing functions for Red Bank storage keys and query responses."""
from __future__ import annotations

import logging
from typing import Any

from ...errors import KeyDecodeError, QueryError
from ...models import (
    AssetDecimals,
    AssetPrice,
    CollateralPosition,
    DebtPosition,
    StorageEntry,
)
from ...money import to_decimal
from . import keys

logger = logging.getLogger(__name__)

COLLATERALS_NAMESPACE = "colls"

# colls: Map<(UserIdKey, denom), Collateral>
_COLLATERAL_KEY_ARITY = 2


# ---------------------------------------------------------------------------
# Storage keys
# ---------------------------------------------------------------------------


def borrower_from_key(raw_key: bytes, namespace: str = COLLATERALS_NAMESPACE) -> str | None:
    """Return the borrower address of a collateral-map key.

    Keys of other maps and plain items yield ``None``.

    Raises:
        KeyDecodeError: the key belongs to ``namespace`` but is malformed.
    """
    if not raw_key.startswith(keys.namespace_prefix(namespace)):
        return None
    key = keys.decode_map_key(raw_key, _COLLATERAL_KEY_ARITY)
    return keys.parse_user_id(key.parts[0])["addr"]


def extract_borrower(
    entry: StorageEntry, namespace: str = COLLATERALS_NAMESPACE
) -> str | None:
    """Borrower address for a storage entry, or ``None`` to skip it."""
    try:
        wallet = borrower_from_key(entry.key, namespace)
    except KeyDecodeError as e:
        logger.warning("Skipping undecodable storage key %s: %s", entry.key.hex(), e)
        return None

    if wallet is None:
        logger.debug("Skipping non-collateral key %s", entry.key[:16].hex())
    return wallet


# ---------------------------------------------------------------------------
# Smart-query responses
# ---------------------------------------------------------------------------


def _require_list(response: Any, query: dict[str, Any]) -> list[dict[str, Any]]:
    if not isinstance(response, list):
        raise QueryError(f"Expected a list, got {type(response).__name__}", query)
    return response


def _require_amount(raw: dict[str, Any], field: str, query: dict[str, Any]) -> str:
    value = raw.get(field)
    try:
        to_decimal(value)
    except ValueError as e:
        raise QueryError(f"Invalid '{field}' in response: {value!r}", query) from e
    return str(value)


def parse_debts(response: Any, query: dict[str, Any]) -> list[DebtPosition]:
    """Parse a ``user_debts`` response.

    Example item::

        {"denom": "uosmo", "amount": "1000", "amount_scaled": "999...",
         "uncollateralized": false}
    """
    positions: list[DebtPosition] = []
    for raw in _require_list(response, query):
        denom = raw.get("denom") if isinstance(raw, dict) else None
        if not denom:
            raise QueryError(f"Debt without denom: {raw!r}", query)
        positions.append(
            DebtPosition(
                denom=denom,
                amount=_require_amount(raw, "amount", query),
                amount_scaled=str(raw.get("amount_scaled", "0")),
                uncollateralized=bool(raw.get("uncollateralized", False)),
            )
        )
    return positions


def parse_collaterals(response: Any, query: dict[str, Any]) -> list[CollateralPosition]:
    """Parse a ``user_collaterals`` response."""
    positions: list[CollateralPosition] = []
    for raw in _require_list(response, query):
        denom = raw.get("denom") if isinstance(raw, dict) else None
        if not denom:
            raise QueryError(f"Collateral without denom: {raw!r}", query)
        positions.append(
            CollateralPosition(
                denom=denom,
                amount=_require_amount(raw, "amount", query),
                amount_scaled=str(raw.get("amount_scaled", "0")),
                enabled=bool(raw.get("enabled", True)),
            )
        )
    return positions


def parse_price(response: Any, query: dict[str, Any]) -> AssetPrice:
    """Parse an oracle ``price`` response: ``{"denom", "price"}``."""
    if not isinstance(response, dict):
        raise QueryError("Price response is not an object", query)
    denom = response.get("denom") or query["price"]["denom"]
    try:
        price = to_decimal(response.get("price"))
    except ValueError as e:
        raise QueryError(f"Invalid price for {denom}: {response!r}", query) from e
    return AssetPrice(denom=denom, price=price)


def parse_decimal_exponent(response: Any, query: dict[str, Any]) -> AssetDecimals:
    """Parse an oracle ``price_source`` response.

    The exponent is the ``denom_decimals`` field of the configured source
    kind, e.g.::

        {"denom": "uatom",
         "price_source": {"pyth": {"denom_decimals": 6, ...}}}
    """
    if not isinstance(response, dict):
        raise QueryError("Price source response is not an object", query)
    denom = response.get("denom") or query["price_source"]["denom"]
    source = response.get("price_source")
    if not isinstance(source, dict):
        raise QueryError(f"No price source for {denom}", query)

    for kind, params in source.items():
        if isinstance(params, dict) and "denom_decimals" in params:
            try:
                exponent = int(params["denom_decimals"])
            except (TypeError, ValueError) as e:
                raise QueryError(
                    f"Invalid denom_decimals in {kind} source for {denom}", query
                ) from e
            if exponent < 0:
                raise QueryError(f"Negative denom_decimals for {denom}", query)
            return AssetDecimals(denom=denom, decimal_exponent=exponent)

    kinds = ", ".join(source) or "none"
    raise QueryError(
        f"Price source of {denom} ({kinds}) has no denom_decimals", query
    )
