"""Tests for the EMA engine: ema_series and next_ema."""

from __future__ import annotations

import math
from decimal import Decimal

import pytest

from macd_engine.engine.ema import (
    SeedingPolicy,
    ema_series,
    next_ema,
    smoothing_factor,
    to_price,
)
from macd_engine.errors import (
    EmptyPriceSeriesError,
    InvalidPeriodError,
    InvalidPriceError,
)
from tests.factories import REFERENCE_PRICES, linear_prices


class TestNextEma:
    """Single-step EMA advance."""

    def test_absent_prior_seeds_with_price(self) -> None:
        assert next_ema(None, 100.0, 12) == 100.0

    def test_recurrence(self) -> None:
        # k = 2 / (3 + 1) = 0.5 -> (20 - 10) * 0.5 + 10 = 15
        assert next_ema(10.0, 20.0, 3) == pytest.approx(15.0)

    def test_period_one_tracks_price(self) -> None:
        assert next_ema(10.0, 42.0, 1) == pytest.approx(42.0)

    def test_zero_prior_is_not_absent(self) -> None:
        # 0.0 is a real value, not the absent marker
        assert next_ema(0.0, 10.0, 9) == pytest.approx(2.0)

    def test_smoothing_factor(self) -> None:
        assert smoothing_factor(12) == pytest.approx(2 / 13)
        assert smoothing_factor(1) == 1.0


class TestSmaSeededAlignment:
    """Policy SMA: None prefix, seed at period - 1."""

    def test_length_matches_input(self) -> None:
        out = ema_series(REFERENCE_PRICES, 12)
        assert len(out) == len(REFERENCE_PRICES)

    def test_prefix_is_absent(self) -> None:
        out = ema_series(REFERENCE_PRICES, 12)
        assert all(v is None for v in out[:11])
        assert all(v is not None for v in out[11:])

    def test_seed_is_mean_of_first_period(self) -> None:
        out = ema_series(REFERENCE_PRICES, 12)
        assert out[11] == pytest.approx(sum(REFERENCE_PRICES[:12]) / 12)

    def test_linear_series_known_values(self) -> None:
        # Period 3, prices 1..10: seed mean(1,2,3) = 2 at index 2.
        # k = 0.5, so each step lands halfway: ema[i] == i.
        out = ema_series(linear_prices(10), 3)
        assert out[0] is None
        assert out[1] is None
        for i in range(2, 10):
            assert out[i] == pytest.approx(float(i))

    def test_shorter_than_period_is_all_absent(self) -> None:
        out = ema_series([1.0, 2.0, 3.0], 5)
        assert out == [None, None, None]

    def test_length_equal_to_period_defines_last_only(self) -> None:
        out = ema_series([2.0, 4.0, 6.0], 3)
        assert out[:2] == [None, None]
        assert out[2] == pytest.approx(4.0)

    def test_default_policy_is_sma(self) -> None:
        assert ema_series(REFERENCE_PRICES, 9) == ema_series(
            REFERENCE_PRICES, 9, SeedingPolicy.SMA
        )


class TestSmaSeededRecurrence:
    """Every index after the seed follows the EMA recurrence."""

    @pytest.mark.parametrize("period", [1, 3, 9, 12, 26])
    def test_reconstruct_from_seed(self, period: int) -> None:
        out = ema_series(REFERENCE_PRICES, period)
        k = 2 / (period + 1)
        for i in range(period, len(REFERENCE_PRICES)):
            prev = out[i - 1]
            assert prev is not None
            expected = (REFERENCE_PRICES[i] - prev) * k + prev
            assert out[i] == pytest.approx(expected, abs=1e-12)

    def test_constant_prices_stay_constant(self) -> None:
        out = ema_series([50.0] * 20, 5)
        for v in out[4:]:
            assert v == pytest.approx(50.0)


class TestFirstValueSeeded:
    """Policy FIRST_VALUE: defined from index 0."""

    def test_every_index_defined(self) -> None:
        out = ema_series(REFERENCE_PRICES, 26, SeedingPolicy.FIRST_VALUE)
        assert len(out) == len(REFERENCE_PRICES)
        assert all(v is not None for v in out)

    def test_first_value_is_first_price(self) -> None:
        out = ema_series(REFERENCE_PRICES, 12, SeedingPolicy.FIRST_VALUE)
        assert out[0] == 100.0

    def test_single_price(self) -> None:
        assert ema_series([7.5], 12, SeedingPolicy.FIRST_VALUE) == [7.5]

    def test_equals_fold_of_next_ema(self) -> None:
        out = ema_series(REFERENCE_PRICES, 12, SeedingPolicy.FIRST_VALUE)
        prev = None
        for i, price in enumerate(REFERENCE_PRICES):
            prev = next_ema(prev, float(price), 12)
            assert out[i] == prev

    def test_policy_accepts_string_value(self) -> None:
        assert ema_series([1.0, 2.0], 3, "first_value") == ema_series(  # type: ignore[arg-type]
            [1.0, 2.0], 3, SeedingPolicy.FIRST_VALUE
        )

    def test_differs_from_sma_seeded(self) -> None:
        sma = ema_series(REFERENCE_PRICES, 12, SeedingPolicy.SMA)
        first = ema_series(REFERENCE_PRICES, 12, SeedingPolicy.FIRST_VALUE)
        assert sma[11] == pytest.approx(102.5)
        assert first[11] != pytest.approx(102.5, abs=1e-9)


class TestInputConversion:
    """Decimal/int/float accepted; converted to float."""

    def test_decimal_prices(self) -> None:
        out = ema_series([Decimal("1"), Decimal("2"), Decimal("3")], 3)
        assert out[2] == pytest.approx(2.0)
        assert isinstance(out[2], float)

    def test_int_prices(self) -> None:
        out = ema_series([1, 2, 3], 3)
        assert isinstance(out[2], float)

    def test_to_price_rejects_bool(self) -> None:
        with pytest.raises(InvalidPriceError):
            to_price(True)


class TestValidation:
    """Fail fast instead of propagating garbage."""

    @pytest.mark.parametrize("period", [0, -1, 2.5, True, "12", None])
    def test_invalid_period(self, period: object) -> None:
        with pytest.raises(InvalidPeriodError):
            ema_series([1.0, 2.0, 3.0], period)  # type: ignore[arg-type]

    def test_empty_prices(self) -> None:
        with pytest.raises(EmptyPriceSeriesError):
            ema_series([], 3)

    @pytest.mark.parametrize(
        "bad", [math.nan, math.inf, -math.inf, "abc", None, Decimal("sNaN"), 10**400]
    )
    def test_invalid_price_reports_index(self, bad: object) -> None:
        with pytest.raises(InvalidPriceError) as exc_info:
            ema_series([1.0, 2.0, bad, 4.0], 2)  # type: ignore[list-item]
        assert exc_info.value.index == 2

    def test_decimal_nan_rejected(self) -> None:
        with pytest.raises(InvalidPriceError):
            ema_series([Decimal("NaN")], 1)

    def test_unknown_policy_rejected(self) -> None:
        with pytest.raises(ValueError):
            ema_series([1.0], 1, "median")  # type: ignore[arg-type]
