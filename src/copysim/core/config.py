"""Configuration for copy-trade simulation.

Two layers:
    SimulationConfig: per-run inputs supplied by the caller (capital,
        sizing policy, time window, partial-fill policy).
    SimulationSettings: process-wide defaults loaded from ``COPYSIM_*``
        environment variables.

Example:
    >>> config = SimulationConfig(
    ...     initial_capital=1_000,
    ...     sizing=FixedNotionalSizing(notional=100),
    ...     start_ts=1_700_000_000,
    ... )
    >>> config.follow_mode
    'fixed'
"""

from datetime import tzinfo
from functools import lru_cache
from typing import Annotated, Literal, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_CAPITAL = 1_000_000_000.0
MAX_FOLLOW_RATIO = 10.0  # 1000%


class RatioSizing(BaseModel):
    """Follow each source trade at a fraction of its size (1.0 = mirror)."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    mode: Literal["ratio"] = "ratio"
    ratio: float = Field(default=1.0, ge=0.0, le=MAX_FOLLOW_RATIO)


class FixedNotionalSizing(BaseModel):
    """Follow each source trade with a constant dollar amount."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    mode: Literal["fixed"] = "fixed"
    notional: float = Field(default=100.0, ge=0.0, le=MAX_CAPITAL)


SizingPolicy = Annotated[
    Union[RatioSizing, FixedNotionalSizing],
    Field(discriminator="mode"),
]


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Resolve an IANA zone name. None means host local time."""
    if name is None:
        return None
    return ZoneInfo(name)


class SimulationConfig(BaseModel):
    """Inputs for a single copy-trade replay.

    Attributes:
        initial_capital: Starting cash in dollars
        sizing: RatioSizing or FixedNotionalSizing
        start_ts: Inclusive lower bound on trade timestamps (None = open)
        end_ts: Inclusive upper bound on trade timestamps (None = open)
        allow_partial_fills: Buy what cash allows instead of skipping
        timezone: IANA zone for hour/day bucketing (None = host local time)
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    initial_capital: float = Field(default=10_000.0, ge=0.0, le=MAX_CAPITAL)
    sizing: SizingPolicy = Field(default_factory=RatioSizing)
    start_ts: Optional[int] = None
    end_ts: Optional[int] = None
    allow_partial_fills: bool = True
    timezone: Optional[str] = None

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @model_validator(mode="after")
    def _check_window(self) -> "SimulationConfig":
        if (
            self.start_ts is not None
            and self.end_ts is not None
            and self.start_ts > self.end_ts
        ):
            raise ValueError(
                f"start_ts ({self.start_ts}) must not be after end_ts ({self.end_ts})"
            )
        return self

    @property
    def follow_mode(self) -> str:
        """'ratio' or 'fixed'."""
        return self.sizing.mode

    @property
    def follow_ratio(self) -> float:
        """Ratio in ratio mode; 1.0 otherwise."""
        if isinstance(self.sizing, RatioSizing):
            return self.sizing.ratio
        return 1.0

    @property
    def follow_notional(self) -> Optional[float]:
        """Per-trade dollar budget, only populated in fixed mode."""
        if isinstance(self.sizing, FixedNotionalSizing):
            return self.sizing.notional
        return None

    @property
    def tz(self) -> Optional[tzinfo]:
        return resolve_timezone(self.timezone)


class SimulationSettings(BaseSettings):
    """Process-wide defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COPYSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_initial_capital: float = 10_000.0
    skip_reason_limit: int = Field(default=200, ge=0)
    default_history_days: int = Field(default=30, ge=1)
    cache_max_entries: int = Field(default=64, ge=1)
    timezone: Optional[str] = None


@lru_cache
def get_settings() -> SimulationSettings:
    """Get cached settings singleton.

    In tests, call ``get_settings.cache_clear()`` to reset.
    """
    return SimulationSettings()
