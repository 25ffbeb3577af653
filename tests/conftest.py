"""Shared test fixtures for macd-engine."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop MACD_* variables so config defaults are deterministic."""
    for key in list(os.environ):
        if key.startswith("MACD_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo setup_logging() so handlers never outlive a captured stream."""
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
