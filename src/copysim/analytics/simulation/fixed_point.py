"""Fixed-point arithmetic for the copy-trade replay.

Every monetary amount and quantity inside the engine is an ``int`` scaled
by ``SCALE`` (four implied decimal digits). Floats appear only at the input
and output boundaries, so two replays of the same trades produce identical
results regardless of platform.

Rounding:
    to_scaled and mul_div round half away from zero.
    floor_mul_div truncates toward zero, for quantities that must never
    exceed a bound (e.g. the most shares a cash balance can buy).

Example:
    >>> price = to_scaled(0.4)
    >>> qty = to_scaled(100)
    >>> to_float(mul_div(price, qty, SCALE))
    40.0
"""

import math
from typing import Any, Optional

SCALE = 10_000

# Default limit: trade inputs beyond this magnitude are treated as unusable
MAX_ABS_VALUE = 1e15


def to_scaled(value: Any, limit: Optional[float] = MAX_ABS_VALUE) -> int:
    """Convert a real number to scaled form.

    Non-finite or unparsable values become 0 rather than propagating NaN,
    as do values whose magnitude exceeds ``limit``. Pass ``limit=None`` for
    derived amounts (equity, P&L) that may legitimately be larger.
    """
    try:
        v = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(v) or (limit is not None and abs(v) > limit):
        return 0
    scaled = abs(v) * SCALE
    if not math.isfinite(scaled):
        return 0
    rounded = int(math.floor(scaled + 0.5))
    return rounded if v >= 0 else -rounded


def to_float(scaled: int) -> float:
    """Convert a scaled value back to a float (output boundary only).

    Magnitudes beyond the float range saturate to +/-inf.
    """
    try:
        return scaled / SCALE
    except OverflowError:
        return math.inf if scaled > 0 else -math.inf


def _div_round_half_away(numerator: int, div: int) -> int:
    q, r = divmod(abs(numerator), abs(div))
    if 2 * r >= abs(div):
        q += 1
    negative = (numerator < 0) != (div < 0)
    return -q if negative else q


def mul_div(a: int, b: int, div: int) -> int:
    """Compute ``a * b / div`` exactly, rounded half away from zero.

    Rounding, not truncation, is intentional: 0.5 units in the last place go
    up in magnitude, so results can differ by one unit from a truncating
    integer division. Returns 0 when ``div`` is 0.
    """
    if div == 0:
        return 0
    return _div_round_half_away(a * b, div)


def floor_mul_div(a: int, b: int, div: int) -> int:
    """Compute ``a * b / div`` exactly, truncated toward zero.

    Returns 0 when ``div`` is 0.
    """
    if div == 0:
        return 0
    q = abs(a * b) // abs(div)
    negative = ((a * b) < 0) != (div < 0)
    return -q if negative else q


def safe_div(n: float, d: float) -> float:
    """Float division returning 0.0 for zero or non-finite operands."""
    if not math.isfinite(n) or not math.isfinite(d) or d == 0:
        return 0.0
    return n / d
