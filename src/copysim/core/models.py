"""Core data models for followed trades."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field


class Side(str, Enum):
    """Trade side."""

    BUY = "BUY"
    SELL = "SELL"


def market_key(condition_id: str, asset: str, outcome_index: Optional[int] = None) -> str:
    """Build the market-outcome key used to track positions.

    Format is ``{condition_id}:{asset}:{outcome_index}`` with an empty
    trailing component when the outcome index is unknown.
    """
    suffix = "" if outcome_index is None else str(outcome_index)
    return f"{condition_id}:{asset}:{suffix}"


class Trade(BaseModel):
    """A single fill from a trader's public trade feed.

    Prices are unit prices (probabilities in (0, 1) for prediction markets).
    Timestamps are unix seconds.
    """

    model_config = ConfigDict(frozen=True)

    side: Side
    condition_id: str  # Market-level ID (conditionId)
    asset: str  # Outcome-level ID (asset / clobTokenId)
    size: float
    price: float
    timestamp: int
    outcome_index: Optional[int] = None
    proxy_wallet: Optional[str] = None
    title: Optional[str] = None
    slug: Optional[str] = None
    outcome: Optional[str] = None
    transaction_hash: Optional[str] = None

    @computed_field
    @property
    def value(self) -> float:
        """Computed trade value (price * size)."""
        return self.price * self.size

    @property
    def market_key(self) -> str:
        """Market-outcome key for this trade."""
        return market_key(self.condition_id, self.asset, self.outcome_index)

    @property
    def label(self) -> str:
        """Human-readable market label (title, then slug, then key)."""
        return self.title or self.slug or self.market_key
