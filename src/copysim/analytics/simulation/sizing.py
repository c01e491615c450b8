"""Follow-sizing policy.

Converts a source trade into the quantity a follower would trade:

    Ratio mode:  followed_qty = source_size * ratio
    Fixed mode:  followed_qty = notional / price

Quantities are returned in scaled form (see fixed_point).
"""

from copysim.analytics.simulation.fixed_point import SCALE, mul_div, to_scaled
from copysim.core.config import FixedNotionalSizing, RatioSizing, SizingPolicy
from copysim.core.models import Trade


def desired_quantity(trade: Trade, price: int, sizing: SizingPolicy) -> int:
    """
    Scaled quantity the follower wants to trade.

    Args:
        trade: Source trade
        price: Trade price in scaled form
        sizing: RatioSizing or FixedNotionalSizing

    Returns:
        Scaled quantity (may be <= 0 for unusable input)
    """
    if isinstance(sizing, FixedNotionalSizing):
        if price <= 0:
            return 0
        return mul_div(to_scaled(sizing.notional), SCALE, price)
    if isinstance(sizing, RatioSizing):
        return to_scaled(trade.size * sizing.ratio)
    raise TypeError(f"Unsupported sizing policy: {type(sizing).__name__}")


def is_followable(quantity: int, price: int) -> bool:
    """False for trades that are dropped before reaching the engine."""
    return quantity > 0 and price > 0
