"""MACD indicator engine: bulk and streaming computation."""

from macd_engine.engine import (
    MACDCalculator,
    MACDPoint,
    MACDResult,
    SeedingPolicy,
    StreamingState,
    compute_macd,
    ema_series,
    next_ema,
    next_macd,
)
from macd_engine.errors import (
    EmptyPriceSeriesError,
    InvalidPeriodError,
    InvalidPeriodOrderingError,
    InvalidPriceError,
    InvalidStateError,
    MACDError,
)

__all__ = [
    "EmptyPriceSeriesError",
    "InvalidPeriodError",
    "InvalidPeriodOrderingError",
    "InvalidPriceError",
    "InvalidStateError",
    "MACDCalculator",
    "MACDError",
    "MACDPoint",
    "MACDResult",
    "SeedingPolicy",
    "StreamingState",
    "compute_macd",
    "ema_series",
    "next_ema",
    "next_macd",
]
