"""Tests for Polymarket Data API trade transformers."""

import logging

import pytest

from copysim.collectors.polymarket import transform_trade_response, transform_trades
from copysim.core.exceptions import TradeValidationError
from copysim.core.models import Side


def make_record(**overrides) -> dict:
    """Helper to create a raw Data API trade record."""
    record = {
        "proxyWallet": "0xabc0000000000000000000000000000000000001",
        "side": "BUY",
        "asset": "71321045679252212594626385532706912750332728571942532289631379312455583992563",
        "conditionId": "0xdd22472e552920b8438158ea7238bfadfa4f736aa4cee91a6b86c39ead110917",
        "size": 120.5,
        "price": 0.42,
        "timestamp": 1_717_000_000,
        "title": "Will it rain in NYC tomorrow?",
        "slug": "rain-nyc",
        "outcome": "Yes",
        "outcomeIndex": 0,
        "transactionHash": "0xdeadbeef",
    }
    record.update(overrides)
    return record


class TestTransformTradeResponse:

    def test_maps_all_fields(self):
        trade = transform_trade_response(make_record())

        assert trade.side == Side.BUY
        assert trade.condition_id.startswith("0xdd22")
        assert trade.asset.startswith("7132")
        assert trade.size == 120.5
        assert trade.price == 0.42
        assert trade.timestamp == 1_717_000_000
        assert trade.outcome_index == 0
        assert trade.title == "Will it rain in NYC tomorrow?"
        assert trade.transaction_hash == "0xdeadbeef"
        assert trade.market_key.endswith(":0")

    def test_lowercase_side(self):
        assert transform_trade_response(make_record(side="sell")).side == Side.SELL

    def test_string_numbers(self):
        trade = transform_trade_response(make_record(size="10", price="0.5", outcomeIndex="1"))

        assert trade.size == 10.0
        assert trade.price == 0.5
        assert trade.outcome_index == 1

    def test_millisecond_timestamp(self):
        trade = transform_trade_response(make_record(timestamp=1_717_000_000_123))
        assert trade.timestamp == 1_717_000_000

    def test_iso_timestamp(self):
        trade = transform_trade_response(make_record(timestamp="2024-01-01T00:00:00Z"))
        assert trade.timestamp == 1_704_067_200

    def test_missing_optional_fields(self):
        record = make_record()
        for key in ("title", "slug", "outcome", "outcomeIndex", "transactionHash"):
            record.pop(key)

        trade = transform_trade_response(record)

        assert trade.outcome_index is None
        assert trade.title is None
        assert trade.label == trade.market_key

    def test_unparsable_size_becomes_zero(self):
        assert transform_trade_response(make_record(size="n/a")).size == 0.0

    @pytest.mark.parametrize("side", [None, "", "HOLD"])
    def test_unknown_side_rejected(self, side):
        with pytest.raises(TradeValidationError):
            transform_trade_response(make_record(side=side))

    def test_missing_ids_rejected(self):
        with pytest.raises(TradeValidationError) as exc:
            transform_trade_response(make_record(conditionId=None))
        assert exc.value.record is not None

    def test_bad_timestamp_rejected(self):
        with pytest.raises(TradeValidationError):
            transform_trade_response(make_record(timestamp="yesterday"))

    @pytest.mark.parametrize("timestamp", [float("inf"), float("nan"), "9" * 400])
    def test_non_finite_timestamp_rejected(self, timestamp):
        with pytest.raises(TradeValidationError):
            transform_trade_response(make_record(timestamp=timestamp))

    def test_huge_size_becomes_zero(self):
        assert transform_trade_response(make_record(size=10**400)).size == 0.0

    @pytest.mark.parametrize(
        "overrides",
        [{"outcome": 1}, {"proxyWallet": 12345}, {"title": ["a", "b"]}],
    )
    def test_wrongly_typed_optional_field_rejected(self, overrides):
        with pytest.raises(TradeValidationError) as exc:
            transform_trade_response(make_record(**overrides))
        assert exc.value.record is not None


class TestTransformTrades:

    def test_drops_invalid_records(self, caplog):
        records = [make_record(), make_record(side="HOLD"), make_record(side="SELL")]

        with caplog.at_level(logging.WARNING):
            trades = transform_trades(records)

        assert [t.side for t in trades] == [Side.BUY, Side.SELL]
        assert "Dropping trade record" in caplog.text

    def test_wrongly_typed_field_does_not_abort_batch(self, caplog):
        records = [make_record(), make_record(outcome=1), make_record(side="SELL")]

        with caplog.at_level(logging.WARNING):
            trades = transform_trades(records)

        assert [t.side for t in trades] == [Side.BUY, Side.SELL]
        assert "Invalid trade record" in caplog.text
