"""Metrics calculation for copy-trade replay results.

Derives, after the full replay:
- Summary statistics (final equity, P&L, win rate, extremes)
- Risk metrics (max drawdown, Sharpe-like ratio over equity steps)
- Per-market realized P&L rows
- Day/night buckets by local hour of the closing trade
- A 7 x 24 weekly heatmap of realized P&L

Sign convention: positive P&L = profit.
"""

import math
from datetime import datetime, tzinfo
from typing import Dict, List, Optional, Sequence

import numpy as np

from .events import EquityPoint, RealizedEvent
from .fixed_point import safe_div, to_float, to_scaled

DAY_START_HOUR = 8
DAY_END_HOUR = 20  # exclusive
DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24


def local_datetime(ts: int, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Timestamp as a datetime in ``tz`` (host local time when None).

    Returns None when the platform cannot represent ``ts`` (e.g. beyond
    year 9999, or a millisecond value mistaken for seconds).
    """
    try:
        return datetime.fromtimestamp(ts, tz=tz)
    except (OverflowError, OSError, ValueError):
        return None


def calculate_max_drawdown_pct(equity_values: Sequence[float]) -> float:
    """
    Largest peak-to-trough decline in percent.

    Scans left to right with a running peak. A zero peak contributes no
    drawdown.
    """
    if len(equity_values) == 0:
        return 0.0

    peak = equity_values[0]
    max_dd = 0.0
    for value in equity_values:
        if value > peak:
            peak = value
        dd = 0.0 if peak == 0 else safe_div(peak - value, peak) * 100
        if dd > max_dd:
            max_dd = dd
    return max_dd


def calculate_sharpe_ratio(equity_values: Sequence[float]) -> float:
    """
    Sharpe-like ratio of step-over-step equity returns.

    mean(returns) / std(returns, ddof=1) * sqrt(n). No annualization.
    Returns 0.0 with fewer than two returns or zero variance. A step from
    zero equity counts as a zero return.
    """
    values = np.asarray(equity_values, dtype=float)
    if len(values) < 3:
        return 0.0

    prev = values[:-1]
    nxt = values[1:]
    with np.errstate(divide="ignore", invalid="ignore"):
        returns = np.where(prev == 0, 0.0, (nxt - prev) / np.where(prev == 0, 1.0, prev))

    std = float(np.std(returns, ddof=1))
    if std == 0 or not math.isfinite(std):
        return 0.0
    return float(np.mean(returns)) / std * math.sqrt(len(returns))


def calculate_summary(
    equity: Sequence[EquityPoint],
    realized: Sequence[RealizedEvent],
    initial_capital: float,
) -> Dict[str, float]:
    """
    Calculate summary statistics for a replay.

    Args:
        equity: Equity series in replay order
        realized: Realized events in replay order
        initial_capital: Starting cash

    Returns:
        Dict with:
        - final_equity: Last equity value (initial capital if none)
        - pnl: final_equity - initial_capital
        - pnl_pct: pnl / initial_capital * 100
        - win_rate: Fraction of realized events with pnl > 0
        - max_single_win: Largest realized pnl (>= 0)
        - max_single_loss: Most negative realized pnl (<= 0)
        - max_drawdown_pct: Largest peak-to-trough decline
        - sharpe_ratio: Raw Sharpe-like ratio over equity steps
    """
    final_equity = equity[-1].equity if equity else initial_capital
    # Subtract in scaled form so P&L carries no float noise
    pnl = to_float(
        to_scaled(final_equity, limit=None) - to_scaled(initial_capital, limit=None)
    )

    wins = sum(1 for r in realized if r.pnl > 0)
    max_win = max([0.0] + [r.pnl for r in realized])
    max_loss = min([0.0] + [r.pnl for r in realized])

    values = [p.equity for p in equity]

    return {
        "final_equity": final_equity,
        "pnl": pnl,
        "pnl_pct": safe_div(pnl, initial_capital) * 100,
        "win_rate": wins / len(realized) if realized else 0.0,
        "max_single_win": max_win,
        "max_single_loss": max_loss,
        "max_drawdown_pct": calculate_max_drawdown_pct(values),
        "sharpe_ratio": calculate_sharpe_ratio(values),
    }


def aggregate_pnl_by_market(realized: Sequence[RealizedEvent]) -> List[Dict]:
    """
    Group realized events by market-outcome key.

    Returns:
        List of dicts (key, title, slug, outcome, realized_pnl,
        realized_count, win_count) sorted by realized_pnl, best first.
        Ties keep first-seen order.
    """
    rows: Dict[str, Dict] = {}
    for r in realized:
        row = rows.get(r.key)
        if row is None:
            row = {
                "key": r.key,
                "title": r.title,
                "slug": r.slug,
                "outcome": r.outcome,
                "realized_pnl": 0,
                "realized_count": 0,
                "win_count": 0,
            }
            rows[r.key] = row
        row["realized_pnl"] += to_scaled(r.pnl, limit=None)
        row["realized_count"] += 1
        if r.pnl > 0:
            row["win_count"] += 1
        row["title"] = row["title"] or r.title
        row["slug"] = row["slug"] or r.slug
        row["outcome"] = row["outcome"] or r.outcome

    ordered = sorted(rows.values(), key=lambda row: row["realized_pnl"], reverse=True)
    for row in ordered:
        row["realized_pnl"] = to_float(row["realized_pnl"])
    return ordered


def is_daytime(hour: int) -> bool:
    """True for 08:00-19:59."""
    return DAY_START_HOUR <= hour < DAY_END_HOUR


def bucket_day_night(
    realized: Sequence[RealizedEvent],
    tz: Optional[tzinfo] = None,
) -> List[Dict]:
    """
    Split realized P&L by the local hour of the closing trade.
    Events whose timestamp has no calendar representation are left out.

    Returns:
        Two dicts, 'day' then 'night', each with label, realized_pnl,
        realized_count and win_rate.
    """
    buckets = {
        "day": {"pnl": 0, "count": 0, "wins": 0},
        "night": {"pnl": 0, "count": 0, "wins": 0},
    }
    for r in realized:
        dt = local_datetime(r.ts, tz)
        if dt is None:
            continue
        bucket = buckets["day" if is_daytime(dt.hour) else "night"]
        bucket["pnl"] += to_scaled(r.pnl, limit=None)
        bucket["count"] += 1
        if r.pnl > 0:
            bucket["wins"] += 1

    return [
        {
            "label": label,
            "realized_pnl": to_float(b["pnl"]),
            "realized_count": b["count"],
            "win_rate": b["wins"] / b["count"] if b["count"] else 0.0,
        }
        for label, b in buckets.items()
    ]


def build_pnl_heatmap(
    realized: Sequence[RealizedEvent],
    tz: Optional[tzinfo] = None,
) -> List[Dict]:
    """
    Sum realized P&L into a day-of-week x hour-of-day grid.

    Day 0 is Sunday. Cells are returned row-major (day, then hour), all
    168 of them, including empty ones.
    Events whose timestamp has no calendar representation are left out.
    """
    # Object cells keep exact Python ints; scaled sums can exceed int64
    grid = np.zeros((DAYS_PER_WEEK, HOURS_PER_DAY), dtype=object)
    for r in realized:
        dt = local_datetime(r.ts, tz)
        if dt is None:
            continue
        day = (dt.weekday() + 1) % DAYS_PER_WEEK
        grid[day, dt.hour] += to_scaled(r.pnl, limit=None)

    return [
        {"day": day, "hour": hour, "value": to_float(int(grid[day, hour]))}
        for day in range(DAYS_PER_WEEK)
        for hour in range(HOURS_PER_DAY)
    ]
