"""Tests for the Trade record."""

from tradelog.core.enums import Side, TradeStatus
from tradelog.journal.record import Trade

from factories import make_trade


class TestStatus:
    def test_gain(self):
        assert make_trade(exit_price=110).status == TradeStatus.GAIN

    def test_loss(self):
        assert make_trade(exit_price=90).status == TradeStatus.LOSS

    def test_breakeven(self):
        assert make_trade(exit_price=100).status == TradeStatus.BREAKEVEN


class TestBlob:
    def test_camel_case_keys(self):
        data = make_trade().to_dict()
        assert data["tradeNumber"] == 1
        assert data["entryPrice"] == 100.0
        assert data["exitPrice"] == 110.0
        assert "trade_number" not in data

    def test_enum_side_serialised_as_label(self):
        trade = make_trade()
        trade.side = Side.SELL
        assert trade.to_dict()["side"] == "Venda"

    def test_round_trip(self):
        trade = make_trade(notes="bom trade")
        assert Trade.from_dict(trade.to_dict()) == trade

    def test_missing_notes_defaults_to_empty(self):
        data = make_trade().to_dict()
        del data["notes"]
        assert Trade.from_dict(data).notes == ""

    def test_null_notes_defaults_to_empty(self):
        data = make_trade().to_dict()
        data["notes"] = None
        assert Trade.from_dict(data).notes == ""

