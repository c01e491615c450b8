"""Simulation result containers and tabular views.

Provides:
- SimulationResult: Complete, immutable outcome of one copy-trade replay
- create_simulation_result: Assemble a result from raw engine outputs
- DataFrame views (equity, realized, per-market, heatmap) for charts,
  tables and exports

Consumers read results; nothing here mutates them.
"""

from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional, Sequence, Union

import pandas as pd

from .events import EquityPoint, RealizedEvent
from .metrics import (
    aggregate_pnl_by_market,
    bucket_day_night,
    build_pnl_heatmap,
    calculate_summary,
)


# Whole seconds representable as datetime64[ns]
_MIN_FRAME_TS = pd.Timestamp.min.value // 10**9 + 1
_MAX_FRAME_TS = pd.Timestamp.max.value // 10**9


def _utc_timestamp(ts: int):
    if not _MIN_FRAME_TS <= ts <= _MAX_FRAME_TS:
        return pd.NaT
    return pd.Timestamp(int(ts), unit="s", tz="UTC")


@dataclass(frozen=True)
class SimulationMeta:
    """Run parameters and trade accounting.

    Attributes:
        initial_capital: Starting cash
        follow_mode: 'ratio' or 'fixed'
        follow_ratio: Ratio used in ratio mode
        follow_notional: Per-trade budget, only set in fixed mode
        start_ts: Window start, if bounded
        end_ts: Window end, if bounded
        input_trade_count: Trades handed to the engine
        used_trade_count: Trades inside the window
        skipped_trade_count: Trades that reached the engine but did not fill
        partial_fill_count: Trades filled at reduced size
        dropped_trade_count: Trades dropped for unusable size or price
    """

    initial_capital: float
    follow_mode: str
    follow_ratio: float
    follow_notional: Optional[float]
    start_ts: Optional[int]
    end_ts: Optional[int]
    input_trade_count: int
    used_trade_count: int
    skipped_trade_count: int
    partial_fill_count: int
    dropped_trade_count: int = 0


@dataclass(frozen=True)
class SimulationSummary:
    """Headline statistics for a replay."""

    final_equity: float
    pnl: float
    pnl_pct: float
    win_rate: float
    max_single_win: float
    max_single_loss: float
    max_drawdown_pct: float
    sharpe_ratio: float


@dataclass(frozen=True)
class MarketPnlRow:
    """Realized P&L for one market-outcome key."""

    key: str
    title: Optional[str]
    slug: Optional[str]
    outcome: Optional[str]
    realized_pnl: float
    realized_count: int
    win_count: int

    @property
    def win_rate(self) -> float:
        if self.realized_count == 0:
            return 0.0
        return self.win_count / self.realized_count


@dataclass(frozen=True)
class DayNightStats:
    """Realized P&L bucket for 'day' (08:00-19:59) or 'night'."""

    label: str
    realized_pnl: float
    realized_count: int
    win_rate: float


@dataclass(frozen=True)
class HeatmapCell:
    """Realized P&L for one (day-of-week, hour) cell. Day 0 is Sunday."""

    day: int
    hour: int
    value: float


@dataclass(frozen=True)
class SimulationResult:
    """Complete result of one copy-trade replay.

    Frozen for immutability; collections are tuples.
    """

    meta: SimulationMeta
    summary: SimulationSummary
    equity: tuple
    realized: tuple
    pnl_by_market: tuple
    day_night: tuple
    pnl_heatmap: tuple
    skipped_trade_reasons: tuple

    def equity_frame(self, tz: Optional[Union[str, tzinfo]] = None) -> pd.DataFrame:
        """Equity series with columns ts, timestamp, equity, cash.

        The timestamp column is UTC unless ``tz`` is given, in which case it
        is converted to that zone. Timestamps outside the datetime64 range
        become NaT.
        """
        df = pd.DataFrame(
            [{"ts": p.ts, "equity": p.equity, "cash": p.cash} for p in self.equity],
            columns=["ts", "equity", "cash"],
        )
        stamps = pd.to_datetime(
            pd.Series([_utc_timestamp(ts) for ts in df["ts"]], dtype=object),
            utc=True,
        )
        if tz is not None:
            stamps = stamps.dt.tz_convert(tz)
        df.insert(1, "timestamp", stamps)
        return df

    def realized_frame(self) -> pd.DataFrame:
        """One row per realized event."""
        columns = [
            "ts", "key", "title", "slug", "outcome",
            "qty", "entry_price", "exit_price", "pnl",
        ]
        return pd.DataFrame(
            [{c: getattr(r, c) for c in columns} for r in self.realized],
            columns=columns,
        )

    def pnl_by_market_frame(self) -> pd.DataFrame:
        """Per-market rows, best first, with a win_rate column."""
        columns = [
            "key", "title", "slug", "outcome",
            "realized_pnl", "realized_count", "win_count", "win_rate",
        ]
        return pd.DataFrame(
            [{c: getattr(row, c) for c in columns} for row in self.pnl_by_market],
            columns=columns,
        )

    def heatmap_frame(self) -> pd.DataFrame:
        """7 x 24 pivot of realized P&L (index = day, columns = hour)."""
        df = pd.DataFrame(
            [{"day": c.day, "hour": c.hour, "value": c.value} for c in self.pnl_heatmap],
            columns=["day", "hour", "value"],
        )
        return df.pivot(index="day", columns="hour", values="value")


def create_simulation_result(
    meta: SimulationMeta,
    equity: Sequence[EquityPoint],
    realized: Sequence[RealizedEvent],
    skipped_trade_reasons: Sequence[str],
    tz: Optional[tzinfo] = None,
) -> SimulationResult:
    """
    Create SimulationResult from raw engine outputs.

    Args:
        meta: Run parameters and trade accounting
        equity: Equity series in replay order
        realized: Realized events in replay order
        skipped_trade_reasons: Capped skip-reason log
        tz: Zone for hour/day bucketing (host local time when None)

    Returns:
        SimulationResult with all metrics
    """
    summary = calculate_summary(equity, realized, meta.initial_capital)

    return SimulationResult(
        meta=meta,
        summary=SimulationSummary(**summary),
        equity=tuple(equity),
        realized=tuple(realized),
        pnl_by_market=tuple(MarketPnlRow(**row) for row in aggregate_pnl_by_market(realized)),
        day_night=tuple(DayNightStats(**b) for b in bucket_day_night(realized, tz)),
        pnl_heatmap=tuple(HeatmapCell(**c) for c in build_pnl_heatmap(realized, tz)),
        skipped_trade_reasons=tuple(skipped_trade_reasons),
    )
