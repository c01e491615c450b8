"""Tests for simulation result containers and tabular views.

Tests for:
- create_simulation_result assembling metrics and aggregations
- Immutability of results
- DataFrame views for equity, realized events, markets and heatmap
"""

import dataclasses
from datetime import timezone

import pandas as pd
import pytest

from copysim.analytics.simulation.events import EquityPoint, RealizedEvent
from copysim.analytics.simulation.results import (
    DayNightStats,
    MarketPnlRow,
    SimulationMeta,
    SimulationResult,
    create_simulation_result,
)


def make_meta(**overrides) -> SimulationMeta:
    """Helper to create SimulationMeta for testing."""
    values = dict(
        initial_capital=100.0,
        follow_mode="ratio",
        follow_ratio=1.0,
        follow_notional=None,
        start_ts=None,
        end_ts=None,
        input_trade_count=2,
        used_trade_count=2,
        skipped_trade_count=0,
        partial_fill_count=0,
    )
    values.update(overrides)
    return SimulationMeta(**values)


def make_result() -> SimulationResult:
    equity = [
        EquityPoint(ts=1_704_103_200, equity=100.0, cash=60.0),
        EquityPoint(ts=1_704_106_800, equity=110.0, cash=110.0),
    ]
    realized = [
        RealizedEvent(
            ts=1_704_106_800,  # Monday 2024-01-01 11:00 UTC
            key="c:a:0",
            title="Market",
            slug="market",
            outcome="Yes",
            qty=100.0,
            entry_price=0.4,
            exit_price=0.5,
            pnl=10.0,
        )
    ]
    return create_simulation_result(
        meta=make_meta(),
        equity=equity,
        realized=realized,
        skipped_trade_reasons=["reason"],
        tz=timezone.utc,
    )


class TestCreateSimulationResult:

    def test_summary_populated(self):
        result = make_result()

        assert result.summary.final_equity == 110.0
        assert result.summary.pnl == pytest.approx(10.0)
        assert result.summary.pnl_pct == pytest.approx(10.0)
        assert result.summary.win_rate == 1.0
        assert result.summary.max_single_win == 10.0

    def test_aggregations_populated(self):
        result = make_result()

        assert result.pnl_by_market == (
            MarketPnlRow(
                key="c:a:0",
                title="Market",
                slug="market",
                outcome="Yes",
                realized_pnl=10.0,
                realized_count=1,
                win_count=1,
            ),
        )
        assert result.pnl_by_market[0].win_rate == 1.0
        assert result.day_night[0] == DayNightStats(
            label="day", realized_pnl=10.0, realized_count=1, win_rate=1.0
        )
        assert result.day_night[1].realized_count == 0
        assert len(result.pnl_heatmap) == 168
        assert result.skipped_trade_reasons == ("reason",)

    def test_collections_are_tuples(self):
        result = make_result()
        assert isinstance(result.equity, tuple)
        assert isinstance(result.realized, tuple)
        assert isinstance(result.pnl_heatmap, tuple)

    def test_result_is_frozen(self):
        result = make_result()
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.meta = make_meta()
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.summary.pnl = 0.0


class TestFrames:

    def test_equity_frame(self):
        df = make_result().equity_frame()

        assert list(df.columns) == ["ts", "timestamp", "equity", "cash"]
        assert len(df) == 2
        assert df["timestamp"].iloc[0] == pd.Timestamp("2024-01-01 10:00:00", tz="UTC")

    def test_equity_frame_in_zone(self):
        df = make_result().equity_frame(tz="America/New_York")

        stamp = df["timestamp"].iloc[0]
        assert str(stamp.tz) == "America/New_York"
        assert stamp.hour == 5
        assert stamp == pd.Timestamp("2024-01-01 10:00:00", tz="UTC")

    def test_equity_frame_out_of_range_is_nat(self):
        result = create_simulation_result(
            make_meta(),
            [
                EquityPoint(ts=1_704_103_200, equity=100.0, cash=100.0),
                EquityPoint(ts=1_700_000_000_000, equity=100.0, cash=100.0),
            ],
            [],
            [],
            tz=timezone.utc,
        )

        df = result.equity_frame()

        assert not pd.isna(df["timestamp"].iloc[0])
        assert pd.isna(df["timestamp"].iloc[1])

    def test_realized_frame(self):
        df = make_result().realized_frame()

        assert len(df) == 1
        assert df["pnl"].iloc[0] == 10.0
        assert df["key"].iloc[0] == "c:a:0"

    def test_pnl_by_market_frame(self):
        df = make_result().pnl_by_market_frame()

        assert df["win_rate"].iloc[0] == 1.0
        assert df["realized_count"].iloc[0] == 1

    def test_heatmap_frame_shape(self):
        df = make_result().heatmap_frame()

        assert df.shape == (7, 24)
        assert df.loc[1, 11] == 10.0
        assert df.values.sum() == pytest.approx(10.0)

    def test_empty_frames_keep_columns(self):
        result = create_simulation_result(make_meta(), [], [], [], tz=timezone.utc)

        assert result.realized_frame().empty
        assert "pnl" in result.realized_frame().columns
        assert result.equity_frame().empty
