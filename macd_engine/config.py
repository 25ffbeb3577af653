"""Pydantic Settings configuration models.

Config hierarchy (lowest to highest priority):
1. Pydantic defaults (in code below)
2. .env file (loaded by Pydantic Settings)
3. Environment variables (e.g., MACD_INDICATOR__SLOW_PERIOD=30)
4. Explicit CLI options, applied by the caller
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from macd_engine.engine.ema import SeedingPolicy

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_LOG_FORMATS = frozenset({"console", "json"})


class IndicatorConfig(BaseModel):
    """MACD periods, seeding policy and output precision.

    precision only affects presentation; the engine always computes at
    full float precision. None disables rounding.
    """

    fast_period: int = Field(default=12, ge=1, le=200)
    slow_period: int = Field(default=26, ge=2, le=500)
    signal_period: int = Field(default=9, ge=1, le=200)
    seeding_policy: SeedingPolicy = SeedingPolicy.SMA
    precision: int | None = Field(default=4, ge=0, le=12)

    @model_validator(mode="after")
    def validate_period_ordering(self) -> Self:
        if self.slow_period <= self.fast_period:
            raise ValueError(
                f"slow_period ({self.slow_period}) must be greater than "
                f"fast_period ({self.fast_period})"
            )
        return self


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Env var examples:
        MACD_LOG_LEVEL=DEBUG
        MACD_LOG_FORMAT=json
        MACD_INDICATOR__SEEDING_POLICY=first_value
    """

    model_config = SettingsConfigDict(
        env_prefix="MACD_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    indicator: IndicatorConfig = IndicatorConfig()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got {v}"
            )
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_LOG_FORMATS:
            raise ValueError(
                f"log_format must be one of {sorted(VALID_LOG_FORMATS)}, got {v}"
            )
        return v
