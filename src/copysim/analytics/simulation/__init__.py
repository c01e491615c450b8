"""Copy-trade simulation engine.

This package replays a trader's historical fills as if a follower had
copied them with a budget, and summarizes the outcome.

Core Components:
    CopyTradeEngine: Fixed-point replay of trades against cash and positions
    SimulationResult: Immutable summary, equity series and aggregations
    SimulationRunner: Memoizing runner with backtest and live windows

Example:
    >>> from copysim.analytics.simulation import simulate_copy_trades
    >>> from copysim.core.config import SimulationConfig
    >>> from copysim.core.models import Side, Trade
    >>>
    >>> trades = [
    ...     Trade(side=Side.BUY, condition_id="c", asset="a",
    ...           size=100, price=0.4, timestamp=1),
    ...     Trade(side=Side.SELL, condition_id="c", asset="a",
    ...           size=100, price=0.6, timestamp=2),
    ... ]
    >>> result = simulate_copy_trades(trades, SimulationConfig(initial_capital=10_000))
    >>> result.summary.final_equity
    10020.0
"""

from copysim.analytics.simulation.events import (
    EquityPoint,
    PositionState,
    RealizedEvent,
)
from copysim.analytics.simulation.results import (
    DayNightStats,
    HeatmapCell,
    MarketPnlRow,
    SimulationMeta,
    SimulationResult,
    SimulationSummary,
)
from copysim.analytics.simulation.engine import CopyTradeEngine, simulate_copy_trades
from copysim.analytics.simulation.windows import (
    ReplayWindow,
    backtest_window,
    backtest_window_for_days,
    live_window,
)
from copysim.analytics.simulation.runner import SimulationRunner, cache_key

__all__ = [
    "EquityPoint",
    "PositionState",
    "RealizedEvent",
    "DayNightStats",
    "HeatmapCell",
    "MarketPnlRow",
    "SimulationMeta",
    "SimulationResult",
    "SimulationSummary",
    "CopyTradeEngine",
    "simulate_copy_trades",
    "ReplayWindow",
    "backtest_window",
    "backtest_window_for_days",
    "live_window",
    "SimulationRunner",
    "cache_key",
]
