"""Indicator error hierarchy.

All engine exceptions inherit from MACDError, enabling clean exception
handling at the presentation boundary. Every error is fatal to the call
that raised it; no partial result is returned.
"""

from __future__ import annotations


class MACDError(Exception):
    """Base exception for all indicator errors."""


class InvalidPeriodError(MACDError):
    """A smoothing period is not a positive integer."""

    def __init__(self, name: str, value: object) -> None:
        self.name = name
        self.value = value
        super().__init__(f"{name} must be a positive integer, got {value!r}")


class InvalidPeriodOrderingError(MACDError):
    """slow_period is not strictly greater than fast_period."""

    def __init__(self, fast_period: int, slow_period: int) -> None:
        self.fast_period = fast_period
        self.slow_period = slow_period
        super().__init__(
            f"slow_period must be greater than fast_period, "
            f"got fast={fast_period} slow={slow_period}"
        )


class EmptyPriceSeriesError(MACDError):
    """Bulk computation was given no prices."""

    def __init__(self) -> None:
        super().__init__("Price series must not be empty")


class InvalidPriceError(MACDError):
    """A price is not a finite real number.

    index is None for a single streaming tick.
    """

    def __init__(self, value: object, index: int | None = None) -> None:
        self.value = value
        self.index = index
        where = "" if index is None else f" at index {index}"
        super().__init__(f"Price must be a finite number{where}, got {value!r}")


class InvalidStateError(MACDError):
    """Serialized streaming state is missing fields or malformed."""
