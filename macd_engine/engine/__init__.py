"""Engine layer: EMA and MACD computation, bulk and streaming."""

from macd_engine.engine.ema import SeedingPolicy, ema_series, next_ema
from macd_engine.engine.macd import (
    MACDCalculator,
    MACDPoint,
    MACDResult,
    StreamingState,
    compute_macd,
    crossover,
    next_macd,
)

__all__ = [
    "MACDCalculator",
    "MACDPoint",
    "MACDResult",
    "SeedingPolicy",
    "StreamingState",
    "compute_macd",
    "crossover",
    "ema_series",
    "next_ema",
    "next_macd",
]
