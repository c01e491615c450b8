"""Analytics module for replaying and analyzing followed trades."""

from copysim.analytics import simulation

__all__ = [
    "simulation",
]
