"""Exact decimal arithmetic for USD valuations.

All monetary values are :class:`decimal.Decimal`. Converting a raw
base-unit amount to whole units uses ``scaleb`` which only shifts the
exponent, and products and sums run with enough precision to stay exact
for on-chain magnitudes. The single rounding step is the ratio division,
quantized to ``RATIO_PLACES`` fractional digits with banker's rounding.
"""
from __future__ import annotations

from collections.abc import Iterable
from decimal import (
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    InvalidOperation,
    localcontext,
)

ZERO = Decimal(0)
INFINITE_RATIO = Decimal("Infinity")

EXACT_PRECISION = 120
RATIO_PRECISION = 50
RATIO_PLACES = 18
_RATIO_QUANTUM = Decimal(1).scaleb(-RATIO_PLACES)
_EXACT = Context(prec=EXACT_PRECISION)


def to_decimal(value: str | int | Decimal) -> Decimal:
    """Parse a JSON number (usually a string) into a finite Decimal.

    Raises:
        ValueError: ``value`` is a float or not a finite decimal number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (str, int)) and not isinstance(value, bool):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a decimal number: {value!r}") from e
    else:
        raise ValueError(f"Unsupported numeric value: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Not a finite decimal number: {value!r}")
    return result


def to_whole_units(amount: str | int | Decimal, decimal_exponent: int) -> Decimal:
    """``amount / 10**decimal_exponent`` without rounding."""
    return to_decimal(amount).scaleb(-decimal_exponent, _EXACT)


def usd_value(
    amount: str | int | Decimal, decimal_exponent: int, price: Decimal
) -> Decimal:
    """USD value of a raw base-unit ``amount`` at ``price`` per whole unit."""
    return _EXACT.multiply(to_whole_units(amount, decimal_exponent), price)


def total(values: Iterable[Decimal]) -> Decimal:
    """Sum values exactly; the result does not depend on iteration order."""
    result = ZERO
    for value in values:
        result = _EXACT.add(result, value)
    return result


def collateralization_ratio(total_collateral: Decimal, total_debt: Decimal) -> Decimal:
    """Collateral / debt, or :data:`INFINITE_RATIO` when debt is exactly zero."""
    if total_debt == ZERO:
        return INFINITE_RATIO

    with localcontext() as ctx:
        ctx.prec = RATIO_PRECISION
        quotient = total_collateral / total_debt
        # quantize needs room for every integer digit plus the fraction
        ctx.prec = max(RATIO_PRECISION, quotient.adjusted() + RATIO_PLACES + 2)
        return quotient.quantize(_RATIO_QUANTUM, rounding=ROUND_HALF_EVEN)


def format_usd(value: Decimal) -> str:
    return f"{value:f}"


def format_ratio(ratio: Decimal) -> str:
    """Render a ratio for log output; trailing zeros are dropped."""
    if ratio.is_infinite():
        return "Infinite"
    return f"{ratio.normalize(_EXACT):f}"
