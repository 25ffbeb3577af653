"""Exponential moving average, bulk and incremental.

ema_series computes a full series under one of two seeding policies.
next_ema advances a single EMA value by one observation. Both policies
apply the recurrence through next_ema, so a FIRST_VALUE series is exactly
the fold of next_ema over the prices.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import Decimal
from enum import Enum
from numbers import Real

from macd_engine.errors import (
    EmptyPriceSeriesError,
    InvalidPeriodError,
    InvalidPriceError,
)

PriceLike = float | int | Decimal


class SeedingPolicy(str, Enum):
    """How the first defined EMA value is obtained."""

    SMA = "sma"
    FIRST_VALUE = "first_value"


def smoothing_factor(period: int) -> float:
    """k = 2 / (period + 1)."""
    return 2 / (period + 1)


def validate_period(name: str, period: object) -> int:
    """Return period unchanged, or raise InvalidPeriodError."""
    if isinstance(period, bool) or not isinstance(period, int) or period < 1:
        raise InvalidPeriodError(name, period)
    return period


def to_price(value: object, index: int | None = None) -> float:
    """Convert a price to float at the engine boundary.

    Decimal, int and float are accepted. NaN, infinities and non-numbers
    raise InvalidPriceError.
    """
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        raise InvalidPriceError(value, index)
    try:
        price = float(value)
    except (ValueError, OverflowError) as e:
        raise InvalidPriceError(value, index) from e
    if not math.isfinite(price):
        raise InvalidPriceError(value, index)
    return price


def to_prices(prices: Sequence[PriceLike]) -> list[float]:
    """Validate and convert a whole price sequence."""
    if len(prices) == 0:
        raise EmptyPriceSeriesError()
    return [to_price(p, i) for i, p in enumerate(prices)]


def next_ema(prior: float | None, price: float, period: int) -> float:
    """Advance an EMA by one observation.

    A None prior seeds the EMA with the price itself. The caller is
    responsible for validating period.
    """
    if prior is None:
        return price
    return (price - prior) * smoothing_factor(period) + prior


def ema_series(
    prices: Sequence[PriceLike],
    period: int,
    policy: SeedingPolicy = SeedingPolicy.SMA,
) -> list[float | None]:
    """EMA series index-aligned with prices.

    SMA: the mean of the first `period` prices sits at index period - 1,
    earlier indices are None. If there are fewer than `period` prices the
    whole series is None.

    FIRST_VALUE: index 0 is prices[0] and every index is defined.
    """
    validate_period("period", period)
    values = to_prices(prices)
    policy = SeedingPolicy(policy)

    out: list[float | None]
    if policy is SeedingPolicy.FIRST_VALUE:
        out = []
        prev: float | None = None
        for price in values:
            prev = next_ema(prev, price, period)
            out.append(prev)
        return out

    out = [None] * len(values)
    if len(values) < period:
        return out

    seed = sum(values[:period]) / period
    out[period - 1] = seed
    prev = seed
    for i in range(period, len(values)):
        prev = next_ema(prev, values[i], period)
        out[i] = prev
    return out
