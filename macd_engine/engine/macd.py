"""MACD line, signal line and histogram, bulk and streaming.

compute_macd is a pure pass over a complete price series. next_macd is a
pure function of (StreamingState, price) -> (MACDPoint, StreamingState);
all mutable state lives in the caller-owned StreamingState. MACDCalculator
wraps next_macd for callers that want to hold one stream in an object.

Streaming seeds every EMA with its first observation, so replaying prices
through next_macd reproduces compute_macd(policy=FIRST_VALUE) exactly. It
does not match the default SMA-seeded bulk output.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any

import structlog

from macd_engine.engine.ema import (
    PriceLike,
    SeedingPolicy,
    ema_series,
    next_ema,
    to_price,
    to_prices,
    validate_period,
)
from macd_engine.errors import (
    InvalidPeriodOrderingError,
    InvalidStateError,
    MACDError,
)

log = structlog.get_logger()

DEFAULT_FAST_PERIOD = 12
DEFAULT_SLOW_PERIOD = 26
DEFAULT_SIGNAL_PERIOD = 9

_STATE_KEYS = (
    "fast_value",
    "slow_value",
    "signal_value",
    "fast_period",
    "slow_period",
    "signal_period",
)


def validate_periods(fast_period: int, slow_period: int, signal_period: int) -> None:
    """Raise InvalidPeriodError or InvalidPeriodOrderingError."""
    validate_period("fast_period", fast_period)
    validate_period("slow_period", slow_period)
    validate_period("signal_period", signal_period)
    if slow_period <= fast_period:
        raise InvalidPeriodOrderingError(fast_period, slow_period)


def _state_value(name: str, value: object) -> float | None:
    """None, or a finite float; anything else raises InvalidStateError."""
    if value is None:
        return None
    try:
        return to_price(value)
    except MACDError as e:
        raise InvalidStateError(f"{name}: {e}") from e


def _diff(a: float | None, b: float | None) -> float | None:
    if a is None or b is None:
        return None
    return a - b


@dataclass(frozen=True)
class MACDResult:
    """Bulk MACD output.

    macd, signal and histogram are index-aligned with the input prices.
    None marks positions where the value is not yet defined; it is never
    a stand-in for zero.
    """

    macd: list[float | None]
    signal: list[float | None]
    histogram: list[float | None]
    fast_period: int = DEFAULT_FAST_PERIOD
    slow_period: int = DEFAULT_SLOW_PERIOD
    signal_period: int = DEFAULT_SIGNAL_PERIOD
    policy: SeedingPolicy = SeedingPolicy.SMA
    insufficient_history: bool = False

    def __len__(self) -> int:
        return len(self.macd)

    def rows(self) -> Iterator[tuple[int, float | None, float | None, float | None]]:
        """Yield (index, macd, signal, histogram) per input price."""
        for i, (m, s, h) in enumerate(zip(self.macd, self.signal, self.histogram)):
            yield i, m, s, h


def compute_macd(
    prices: Sequence[PriceLike],
    fast_period: int = DEFAULT_FAST_PERIOD,
    slow_period: int = DEFAULT_SLOW_PERIOD,
    signal_period: int = DEFAULT_SIGNAL_PERIOD,
    policy: SeedingPolicy = SeedingPolicy.SMA,
) -> MACDResult:
    """Bulk-compute MACD for prices ordered oldest to newest.

    Args:
        prices: Closing prices. Must be non-empty and finite.
        fast_period: Fast EMA length.
        slow_period: Slow EMA length, strictly greater than fast_period.
        signal_period: Signal EMA length.
        policy: Seeding policy applied to all three EMAs.

    Raises:
        InvalidPeriodError: A period is not a positive integer.
        InvalidPeriodOrderingError: slow_period <= fast_period.
        EmptyPriceSeriesError: prices is empty.
        InvalidPriceError: A price is NaN, infinite or not a number.
    """
    validate_periods(fast_period, slow_period, signal_period)
    values = to_prices(prices)
    policy = SeedingPolicy(policy)

    required = slow_period + signal_period
    insufficient = len(values) < required
    if insufficient:
        log.warning(
            "insufficient_history",
            price_count=len(values),
            required=required,
        )

    fast_ema = ema_series(values, fast_period, policy)
    slow_ema = ema_series(values, slow_period, policy)
    macd_line = [_diff(f, s) for f, s in zip(fast_ema, slow_ema)]

    # Signal runs over the zero-filled MACD line to keep the recurrence
    # warm, then is masked wherever the MACD line is undefined.
    zero_filled = [0.0 if m is None else m for m in macd_line]
    signal_raw = ema_series(zero_filled, signal_period, policy)
    signal_line = [None if m is None else s for m, s in zip(macd_line, signal_raw)]
    histogram = [_diff(m, s) for m, s in zip(macd_line, signal_line)]

    return MACDResult(
        macd=macd_line,
        signal=signal_line,
        histogram=histogram,
        fast_period=fast_period,
        slow_period=slow_period,
        signal_period=signal_period,
        policy=policy,
        insufficient_history=insufficient,
    )


@dataclass(frozen=True)
class MACDPoint:
    """MACD output for a single streaming tick."""

    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class StreamingState:
    """Everything needed to continue a MACD stream without history.

    Value fields are None until the first tick; after that the engine never
    produces None again. Periods are fixed for the lifetime of the stream.
    """

    fast_value: float | None = None
    slow_value: float | None = None
    signal_value: float | None = None
    fast_period: int = DEFAULT_FAST_PERIOD
    slow_period: int = DEFAULT_SLOW_PERIOD
    signal_period: int = DEFAULT_SIGNAL_PERIOD

    @classmethod
    def initial(
        cls,
        fast_period: int = DEFAULT_FAST_PERIOD,
        slow_period: int = DEFAULT_SLOW_PERIOD,
        signal_period: int = DEFAULT_SIGNAL_PERIOD,
    ) -> StreamingState:
        """All-absent state with validated periods."""
        validate_periods(fast_period, slow_period, signal_period)
        return cls(
            fast_period=fast_period,
            slow_period=slow_period,
            signal_period=signal_period,
        )

    @property
    def is_seeded(self) -> bool:
        return (
            self.fast_value is not None
            and self.slow_value is not None
            and self.signal_value is not None
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the record verbatim for hosts that persist state."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StreamingState:
        """Rebuild a state written by to_dict().

        Raises:
            InvalidStateError: A key is missing or a value has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise InvalidStateError(
                f"Streaming state must be a mapping, got {type(data).__name__}"
            )
        missing = [k for k in _STATE_KEYS if k not in data]
        if missing:
            raise InvalidStateError(f"Streaming state missing keys: {missing}")

        values: dict[str, Any] = {}
        for key in ("fast_value", "slow_value", "signal_value"):
            values[key] = _state_value(key, data[key])
        for key in ("fast_period", "slow_period", "signal_period"):
            try:
                values[key] = validate_period(key, data[key])
            except MACDError as e:
                raise InvalidStateError(str(e)) from e
        return cls(**values)


def next_macd(
    state: StreamingState, price: PriceLike
) -> tuple[MACDPoint, StreamingState]:
    """Advance a MACD stream by one tick.

    Pure: state is not modified; the updated state is returned alongside
    the point.

    Raises:
        InvalidPeriodError: A period in state is not a positive integer.
        InvalidPeriodOrderingError: state.slow_period <= state.fast_period.
        InvalidStateError: A value in state is not None or a finite number.
        InvalidPriceError: price is NaN, infinite or not a number.
    """
    validate_periods(state.fast_period, state.slow_period, state.signal_period)
    value = to_price(price)

    fast = next_ema(_state_value("fast_value", state.fast_value), value, state.fast_period)
    slow = next_ema(_state_value("slow_value", state.slow_value), value, state.slow_period)
    macd_point = fast - slow
    signal = next_ema(
        _state_value("signal_value", state.signal_value), macd_point, state.signal_period
    )

    point = MACDPoint(macd=macd_point, signal=signal, histogram=macd_point - signal)
    new_state = StreamingState(
        fast_value=fast,
        slow_value=slow,
        signal_value=signal,
        fast_period=state.fast_period,
        slow_period=state.slow_period,
        signal_period=state.signal_period,
    )
    return point, new_state


def crossover(previous: MACDPoint | None, current: MACDPoint) -> str | None:
    """Classify a histogram sign change between two consecutive points.

    Returns "bullish" when the histogram moves from <= 0 to > 0, "bearish"
    when it moves from > 0 to <= 0, otherwise None.
    """
    if previous is None:
        return None
    if previous.histogram <= 0 < current.histogram:
        return "bullish"
    if current.histogram <= 0 < previous.histogram:
        return "bearish"
    return None


class MACDCalculator:
    """Holds one MACD stream (one instrument).

    Delegates every tick to next_macd. Not thread-safe: a single
    calculator must not be fed from two threads without serialization.
    """

    def __init__(
        self,
        fast_period: int = DEFAULT_FAST_PERIOD,
        slow_period: int = DEFAULT_SLOW_PERIOD,
        signal_period: int = DEFAULT_SIGNAL_PERIOD,
    ) -> None:
        self._state = StreamingState.initial(fast_period, slow_period, signal_period)
        self._tick_count = 0
        self._previous: MACDPoint | None = None
        self._last: MACDPoint | None = None

    @classmethod
    def from_state(cls, state: StreamingState) -> MACDCalculator:
        """Resume a stream from a previously saved state."""
        validate_periods(state.fast_period, state.slow_period, state.signal_period)
        calc = cls(state.fast_period, state.slow_period, state.signal_period)
        calc._state = state
        return calc

    def process_price(self, price: PriceLike) -> MACDPoint:
        """Feed one tick and return its MACD point."""
        point, self._state = next_macd(self._state, price)
        self._previous = self._last
        self._last = point
        self._tick_count += 1
        log.debug(
            "macd_tick",
            tick=self._tick_count,
            macd=point.macd,
            signal=point.signal,
            histogram=point.histogram,
        )
        return point

    @property
    def state(self) -> StreamingState:
        return self._state

    @property
    def tick_count(self) -> int:
        """Ticks processed by this calculator (not counting resumed history)."""
        return self._tick_count

    @property
    def previous(self) -> MACDPoint | None:
        """Point produced by the tick before the latest one."""
        return self._previous

    @property
    def last(self) -> MACDPoint | None:
        return self._last
