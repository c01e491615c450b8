"""Deterministic copy-trade simulation for prediction-market trade feeds."""

__version__ = "0.1.0"
