"""Backtest and live replay windows.

The engine has no notion of "live": callers compute a window and re-run
the engine over the full (growing) trade list whenever new data arrives.

    Backtest: explicit [start_ts, end_ts], or the last N days of history
    Live: start at the moment the user started following, or just after
        the latest known trade if that moment is unknown; end open
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from copysim.core.exceptions import ConfigurationError
from copysim.core.models import Trade

SECONDS_PER_DAY = 24 * 3600

# Start used for a live window before any trade is known; nothing matches it.
LIVE_SENTINEL_TS = 2**53 - 1


@dataclass(frozen=True)
class ReplayWindow:
    """Inclusive time window handed to SimulationConfig."""

    start_ts: Optional[int] = None
    end_ts: Optional[int] = None
    live: bool = False


def latest_trade_ts(trades: Iterable[Trade]) -> Optional[int]:
    """Timestamp of the most recent trade, or None for no trades."""
    latest = None
    for t in trades:
        if latest is None or t.timestamp > latest:
            latest = t.timestamp
    return latest


def backtest_window(
    start_ts: Optional[int] = None,
    end_ts: Optional[int] = None,
) -> ReplayWindow:
    """Explicit historical window.

    Raises:
        ConfigurationError: If start_ts is after end_ts
    """
    if start_ts is not None and end_ts is not None and start_ts > end_ts:
        raise ConfigurationError(f"start_ts ({start_ts}) is after end_ts ({end_ts})")
    return ReplayWindow(start_ts=start_ts, end_ts=end_ts)


def backtest_window_for_days(trades: Iterable[Trade], days: int) -> ReplayWindow:
    """Window covering the last ``days`` days before the latest trade.

    With no trades the window is unbounded.

    Raises:
        ConfigurationError: If days is not positive
    """
    if days <= 0:
        raise ConfigurationError(f"days must be positive, got {days}")
    latest = latest_trade_ts(trades)
    if latest is None:
        return ReplayWindow()
    return ReplayWindow(start_ts=max(0, latest - days * SECONDS_PER_DAY))


def live_window(
    trades: Iterable[Trade],
    live_start_ts: Optional[int] = None,
) -> ReplayWindow:
    """Window for live following.

    Args:
        trades: Trades known so far
        live_start_ts: When the user started following, if captured

    Returns:
        ReplayWindow starting at live_start_ts, else one second after the
        latest trade, else at LIVE_SENTINEL_TS; end is open
    """
    if live_start_ts:
        return ReplayWindow(start_ts=live_start_ts, live=True)
    latest = latest_trade_ts(trades)
    if latest:
        return ReplayWindow(start_ts=latest + 1, live=True)
    return ReplayWindow(start_ts=LIVE_SENTINEL_TS, live=True)
