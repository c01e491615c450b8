"""Polymarket Data API record transformers."""

from copysim.collectors.polymarket.transformers import (
    transform_trade_response,
    transform_trades,
)

__all__ = [
    "transform_trade_response",
    "transform_trades",
]
