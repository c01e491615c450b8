"""Transform Polymarket Data API trade records to internal models."""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from copysim.core.exceptions import TradeValidationError
from copysim.core.models import Side, Trade

logger = logging.getLogger(__name__)


def _parse_float(value: Any, default: float = 0.0) -> float:
    """Parse a numeric field that may arrive as a string."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _parse_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _parse_timestamp(value: Any) -> Optional[int]:
    """Parse a timestamp to unix seconds.

    Accepts seconds, milliseconds, numeric strings and ISO-8601 strings.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lstrip("-").replace(".", "", 1).isdigit():
            value = float(value)
        else:
            try:
                return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
            except (ValueError, OverflowError, OSError):
                return None
    if isinstance(value, (int, float)):
        # Unix timestamp in seconds or milliseconds
        try:
            if value > 1e12:
                return int(value // 1000)
            return int(value)
        except (ValueError, OverflowError):
            # NaN or infinity
            return None
    return None


def transform_trade_response(data: Dict[str, Any]) -> Trade:
    """
    Transform a Data API trade record to a Trade model.

    Args:
        data: Raw trade record (camelCase keys as returned by the API)

    Raises:
        TradeValidationError: If side, identifiers or timestamp are missing
            or unrecognised, or an optional field has the wrong type
    """
    side_str = str(data.get("side") or "").upper()
    if side_str not in (Side.BUY.value, Side.SELL.value):
        raise TradeValidationError(f"Unknown trade side: {data.get('side')!r}", data)

    # - condition_id = market-level ID ('conditionId' in Data API, 'market' in CLOB API)
    # - asset = outcome token ID
    condition_id = data.get("conditionId") or data.get("market") or ""
    asset = data.get("asset") or data.get("asset_id") or ""
    if not condition_id or not asset:
        raise TradeValidationError("Trade record is missing conditionId or asset", data)

    timestamp = _parse_timestamp(data.get("timestamp") or data.get("match_time"))
    if timestamp is None:
        raise TradeValidationError(
            f"Unparsable trade timestamp: {data.get('timestamp')!r}", data
        )

    try:
        return Trade(
            side=Side(side_str),
            condition_id=str(condition_id),
            asset=str(asset),
            size=_parse_float(data.get("size")),
            price=_parse_float(data.get("price")),
            timestamp=timestamp,
            outcome_index=_parse_optional_int(data.get("outcomeIndex")),
            proxy_wallet=data.get("proxyWallet"),
            title=data.get("title") or None,
            slug=data.get("slug") or None,
            outcome=data.get("outcome") or None,
            transaction_hash=data.get("transactionHash") or None,
        )
    except ValidationError as e:
        raise TradeValidationError(f"Invalid trade record: {e}", data) from e


def transform_trades(records: Iterable[Dict[str, Any]]) -> List[Trade]:
    """Transform a batch of raw records, dropping the ones that fail validation."""
    trades: List[Trade] = []
    rejected = 0
    for record in records:
        try:
            trades.append(transform_trade_response(record))
        except TradeValidationError as e:
            rejected += 1
            logger.warning(f"Dropping trade record: {e}")
    if rejected:
        logger.info(f"Transformed {len(trades)} trades, rejected {rejected}")
    return trades
