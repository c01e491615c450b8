"""Tests for backtest and live replay windows."""

import pytest

from copysim.analytics.simulation.windows import (
    LIVE_SENTINEL_TS,
    SECONDS_PER_DAY,
    ReplayWindow,
    backtest_window,
    backtest_window_for_days,
    latest_trade_ts,
    live_window,
)
from copysim.core.exceptions import ConfigurationError
from copysim.core.models import Side, Trade


def make_trade(timestamp: int) -> Trade:
    return Trade(
        side=Side.BUY,
        condition_id="c",
        asset="a",
        size=1.0,
        price=0.5,
        timestamp=timestamp,
    )


class TestBacktestWindow:

    def test_explicit_bounds(self):
        assert backtest_window(10, 20) == ReplayWindow(start_ts=10, end_ts=20)

    def test_open_bounds(self):
        assert backtest_window() == ReplayWindow()

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ConfigurationError):
            backtest_window(20, 10)

    def test_last_n_days(self):
        latest = 100 * SECONDS_PER_DAY
        trades = [make_trade(latest - 500), make_trade(latest)]

        window = backtest_window_for_days(trades, days=30)

        assert window.start_ts == latest - 30 * SECONDS_PER_DAY
        assert window.end_ts is None
        assert not window.live

    def test_last_n_days_clamped_at_zero(self):
        window = backtest_window_for_days([make_trade(1000)], days=30)
        assert window.start_ts == 0

    def test_last_n_days_without_trades(self):
        assert backtest_window_for_days([], days=7) == ReplayWindow()

    def test_non_positive_days_rejected(self):
        with pytest.raises(ConfigurationError):
            backtest_window_for_days([make_trade(1)], days=0)


class TestLiveWindow:

    def test_uses_captured_start(self):
        window = live_window([make_trade(50)], live_start_ts=1_000)

        assert window == ReplayWindow(start_ts=1_000, end_ts=None, live=True)

    def test_defaults_to_after_latest_trade(self):
        window = live_window([make_trade(50), make_trade(70), make_trade(60)])

        assert window.start_ts == 71
        assert window.end_ts is None

    def test_no_trades_uses_sentinel(self):
        assert live_window([]).start_ts == LIVE_SENTINEL_TS


class TestLatestTradeTs:

    def test_latest(self):
        assert latest_trade_ts([make_trade(3), make_trade(9), make_trade(1)]) == 9

    def test_empty(self):
        assert latest_trade_ts([]) is None
