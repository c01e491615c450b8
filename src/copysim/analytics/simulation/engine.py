"""Copy-trade replay engine.

This module provides the CopyTradeEngine class that replays a trader's
historical fills as if a follower had copied them with a cash budget.

The engine processes trades in strict timestamp order, converts each one
to a followed quantity with the configured sizing policy, and applies it
to a per-market position table and a single cash balance. All arithmetic
runs in scaled integers (see fixed_point), so identical inputs always
produce identical results.

Key Design Principles:
    1. Pure: every run builds its own ledger; the engine keeps no state
    2. Time ordering: trades are re-sorted, caller ordering is not trusted
    3. No shorting, no leverage: cash and held quantity never go negative
    4. No fatal errors: bad input degrades to a drop, a skip or a partial fill

Outcome taxonomy per trade:
    dropped: desired quantity or price not usable; not replayed at all
    skipped: replayed but not filled (no cash, nothing to sell); counted
        and described in the skip-reason log (first N kept)
    partial: filled at reduced size; counted, not logged

Example:
    >>> from copysim.analytics.simulation import CopyTradeEngine
    >>> from copysim.core.config import SimulationConfig
    >>>
    >>> engine = CopyTradeEngine(SimulationConfig(initial_capital=1_000))
    >>> result = engine.run(trades)
    >>> print(f"P&L {result.summary.pnl:.2f} ({result.summary.pnl_pct:.1f}%)")
"""

import logging
import time
from typing import Dict, Iterable, List, Optional

from copysim.analytics.simulation.events import EquityPoint, PositionState, RealizedEvent
from copysim.analytics.simulation.fixed_point import (
    SCALE,
    floor_mul_div,
    mul_div,
    to_float,
    to_scaled,
)
from copysim.analytics.simulation.metrics import local_datetime
from copysim.analytics.simulation.results import (
    SimulationMeta,
    SimulationResult,
    create_simulation_result,
)
from copysim.analytics.simulation.selection import select_trades
from copysim.analytics.simulation.sizing import desired_quantity, is_followable
from copysim.core.config import (
    SimulationConfig,
    SimulationSettings,
    get_settings,
    resolve_timezone,
)
from copysim.core.models import Side, Trade

logger = logging.getLogger(__name__)


class _Ledger:
    """Mutable state for a single replay: cash, positions, outputs."""

    def __init__(self, initial_cash: int, skip_reason_limit: int, tz):
        self.cash = initial_cash
        self.positions: Dict[str, PositionState] = {}
        self.marked: Dict[str, int] = {}
        self.marked_sum = 0
        self.equity: List[EquityPoint] = []
        self.realized: List[RealizedEvent] = []
        self.skipped_count = 0
        self.partial_count = 0
        self.skip_reasons: List[str] = []
        self._skip_reason_limit = skip_reason_limit
        self._tz = tz

    def position_for(self, trade: Trade) -> PositionState:
        key = trade.market_key
        state = self.positions.get(key)
        if state is None:
            state = PositionState()
            self.positions[key] = state
        state.title = state.title or trade.title
        state.slug = state.slug or trade.slug
        state.outcome = state.outcome or trade.outcome
        return state

    def skip(self, trade: Trade, message: str) -> None:
        self.skipped_count += 1
        reason = f"{self._format_ts(trade.timestamp)} {trade.side.value} {message}"
        logger.debug(f"Skipped trade: {reason}")
        # First N reasons are kept; later ones are only counted
        if len(self.skip_reasons) < self._skip_reason_limit:
            self.skip_reasons.append(reason)

    def buy(self, trade: Trade, key: str, state: PositionState, price: int, qty: int,
            allow_partial: bool) -> None:
        label = state.title or state.slug or key
        notional = mul_div(price, qty, SCALE)

        if notional > self.cash:
            if not allow_partial:
                self.skip(
                    trade,
                    f"insufficient cash: {label} needs {to_float(notional):.4f}, "
                    f"available {to_float(self.cash):.4f}",
                )
                return
            qty = floor_mul_div(self.cash, SCALE, price)
            if qty <= 0:
                self.skip(
                    trade,
                    f"insufficient cash: {label} affordable quantity is 0 "
                    f"(available {to_float(self.cash):.4f})",
                )
                return
            self.partial_count += 1
            notional = self.cash

        next_qty = state.qty + qty
        if state.qty == 0:
            state.avg_price = price
        else:
            state.avg_price = mul_div(state.avg_price * state.qty + price * qty, 1, next_qty)
        state.qty = next_qty
        self.cash -= notional

    def sell(self, trade: Trade, key: str, state: PositionState, price: int, qty: int) -> None:
        label = state.title or state.slug or key
        if state.qty <= 0:
            self.skip(trade, f"no sellable position: {label}")
            return

        sell_qty = min(qty, state.qty)
        if sell_qty <= 0:
            self.skip(trade, f"sell quantity is 0: {label}")
            return
        if sell_qty != qty:
            self.partial_count += 1

        self.cash += mul_div(price, sell_qty, SCALE)
        pnl = mul_div(price - state.avg_price, sell_qty, SCALE)
        self.realized.append(RealizedEvent(
            ts=trade.timestamp,
            key=key,
            title=state.title,
            slug=state.slug,
            outcome=state.outcome,
            qty=to_float(sell_qty),
            entry_price=to_float(state.avg_price),
            exit_price=to_float(price),
            pnl=to_float(pnl),
        ))

        state.qty -= sell_qty
        if state.qty == 0:
            state.avg_price = 0

    def mark(self, key: str, state: PositionState, ts: int) -> None:
        """Re-mark one key at its last price and append an equity point."""
        prev = self.marked.get(key, 0)
        nxt = mul_div(state.mark_price, state.qty, SCALE)
        self.marked[key] = nxt
        self.marked_sum += nxt - prev
        self.push_equity(ts)

    def push_equity(self, ts: int) -> None:
        self.equity.append(EquityPoint(
            ts=ts,
            equity=to_float(self.cash + self.marked_sum),
            cash=to_float(self.cash),
        ))

    def _format_ts(self, ts: int) -> str:
        dt = local_datetime(ts, self._tz)
        if dt is None:
            return str(ts)
        return dt.strftime("%Y-%m-%d %H:%M:%S")


class CopyTradeEngine:
    """Deterministic copy-trade replay engine.

    The engine holds only immutable configuration, so one instance may be
    shared across threads; each ``run`` allocates its own ledger.

    Attributes:
        config: SimulationConfig for every run of this engine
        settings: SimulationSettings supplying process-wide defaults
        tz: Zone for timestamps in skip reasons and time buckets
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        settings: Optional[SimulationSettings] = None,
    ):
        """Initialize the engine.

        Args:
            config: Run configuration. If None, uses defaults with the
                settings' default initial capital.
            settings: Process-wide settings. If None, uses get_settings().
        """
        self.settings = settings or get_settings()
        self.config = config or SimulationConfig(
            initial_capital=self.settings.default_initial_capital
        )
        self.tz = resolve_timezone(self.config.timezone or self.settings.timezone)

    def run(self, trades: Iterable[Trade]) -> SimulationResult:
        """Replay trades and return an immutable result.

        Args:
            trades: Full trade history for one address, any order

        Returns:
            SimulationResult with summary, equity series, realized events,
            aggregations and skip reasons
        """
        config = self.config
        trades = list(trades)
        selected = select_trades(trades, config.start_ts, config.end_ts)

        initial_cash = to_scaled(config.initial_capital)
        ledger = _Ledger(initial_cash, self.settings.skip_reason_limit, self.tz)
        dropped = 0

        logger.info(
            f"Replaying {len(selected)} of {len(trades)} trades "
            f"({config.follow_mode} sizing, capital {config.initial_capital})"
        )

        for trade in selected:
            key = trade.market_key
            price = to_scaled(trade.price)
            qty = desired_quantity(trade, price, config.sizing)
            if not is_followable(qty, price):
                dropped += 1
                logger.debug(f"Dropped trade {key} at {trade.timestamp}: qty={qty} price={price}")
                continue

            state = ledger.position_for(trade)
            state.last_price = price

            if trade.side == Side.BUY:
                ledger.buy(trade, key, state, price, qty, config.allow_partial_fills)
            else:
                ledger.sell(trade, key, state, price, qty)

            ledger.mark(key, state, trade.timestamp)

        if not ledger.equity:
            ledger.push_equity(self._fallback_ts())

        meta = SimulationMeta(
            initial_capital=config.initial_capital,
            follow_mode=config.follow_mode,
            follow_ratio=config.follow_ratio,
            follow_notional=config.follow_notional,
            start_ts=config.start_ts,
            end_ts=config.end_ts,
            input_trade_count=len(trades),
            used_trade_count=len(selected),
            skipped_trade_count=ledger.skipped_count,
            partial_fill_count=ledger.partial_count,
            dropped_trade_count=dropped,
        )

        result = create_simulation_result(
            meta=meta,
            equity=ledger.equity,
            realized=ledger.realized,
            skipped_trade_reasons=ledger.skip_reasons,
            tz=self.tz,
        )

        logger.info(
            f"Replay finished: equity {result.summary.final_equity:.4f}, "
            f"{len(result.realized)} realized, {meta.skipped_trade_count} skipped, "
            f"{meta.partial_fill_count} partial, {dropped} dropped"
        )
        return result

    def _fallback_ts(self) -> int:
        if self.config.start_ts is not None:
            return self.config.start_ts
        if self.config.end_ts is not None:
            return self.config.end_ts
        return int(time.time())


def simulate_copy_trades(
    trades: Iterable[Trade],
    config: Optional[SimulationConfig] = None,
    settings: Optional[SimulationSettings] = None,
) -> SimulationResult:
    """Convenience function: replay ``trades`` with a fresh engine."""
    return CopyTradeEngine(config=config, settings=settings).run(trades)
