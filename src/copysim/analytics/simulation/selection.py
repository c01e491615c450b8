"""Trade selection: time-window filter and chronological ordering."""

from typing import Iterable, List, Optional

from copysim.core.models import Trade


def is_within_window(
    ts: int,
    start_ts: Optional[int] = None,
    end_ts: Optional[int] = None,
) -> bool:
    """True if ``ts`` lies in [start_ts, end_ts]. None bounds are open."""
    if start_ts is not None and ts < start_ts:
        return False
    if end_ts is not None and ts > end_ts:
        return False
    return True


def select_trades(
    trades: Iterable[Trade],
    start_ts: Optional[int] = None,
    end_ts: Optional[int] = None,
) -> List[Trade]:
    """
    Select trades inside the window, sorted ascending by timestamp.

    The sort is stable, so trades sharing a timestamp keep their input
    order. Caller ordering is otherwise ignored.

    Args:
        trades: Full trade history (any order)
        start_ts: Inclusive lower bound, or None
        end_ts: Inclusive upper bound, or None

    Returns:
        New list of selected trades
    """
    selected = [t for t in trades if is_within_window(t.timestamp, start_ts, end_ts)]
    selected.sort(key=lambda t: t.timestamp)
    return selected
