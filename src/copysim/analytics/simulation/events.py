"""Record types produced and used by the copy-trade replay.

EquityPoint and RealizedEvent are immutable (frozen dataclasses) and hold
float values converted at the output boundary. PositionState is the
engine's private mutable per-market record, kept in scaled integers.

Example:
    >>> point = EquityPoint(ts=1_700_000_000, equity=10_020.0, cash=10_020.0)
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EquityPoint:
    """Portfolio value after one trade was considered.

    Attributes:
        ts: Trade timestamp (unix seconds)
        equity: Cash plus every position marked at its last observed price
        cash: Cash balance at that point
    """

    ts: int
    equity: float
    cash: float


@dataclass(frozen=True)
class RealizedEvent:
    """P&L locked in by a SELL that matched held quantity.

    Attributes:
        ts: Timestamp of the closing trade
        key: Market-outcome key
        title: Market title, if known
        slug: Market slug, if known
        outcome: Outcome label, if known
        qty: Quantity sold
        entry_price: Average entry price at the time of the sale
        exit_price: Sale price
        pnl: (exit_price - entry_price) * qty
    """

    ts: int
    key: str
    title: Optional[str]
    slug: Optional[str]
    outcome: Optional[str]
    qty: float
    entry_price: float
    exit_price: float
    pnl: float
    side: str = "SELL"


@dataclass
class PositionState:
    """Held position for one market-outcome key (scaled integers).

    Attributes:
        qty: Held quantity, never negative
        avg_price: Volume-weighted entry price; 0 whenever qty is 0
        last_price: Most recent trade price seen for this key
        title: First non-empty title seen
        slug: First non-empty slug seen
        outcome: First non-empty outcome label seen
    """

    qty: int = 0
    avg_price: int = 0
    last_price: int = 0
    title: Optional[str] = None
    slug: Optional[str] = None
    outcome: Optional[str] = None

    @property
    def mark_price(self) -> int:
        return self.last_price or self.avg_price
