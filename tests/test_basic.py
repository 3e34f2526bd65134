"""Basic tests for the cross-exchange arbitrage scanner."""

import pytest

from arbscan.config import Config
from arbscan.core.detector import OpportunityDetector
from arbscan.core.executor import ArbitrageExecutor
from arbscan.core.types import Opportunity, PairSnapshot, calculate_spread, split_pair
from arbscan.exchanges.base import BaseExchange, Quote


class TestBasicImports:
    """Test that basic modules can be imported."""

    def test_config_import(self):
        assert Config is not None

    def test_detector_import(self):
        assert OpportunityDetector is not None

    def test_executor_import(self):
        assert ArbitrageExecutor is not None

    def test_base_exchange_is_abstract(self):
        with pytest.raises(TypeError):
            BaseExchange("x")


class TestQuote:
    """Test quote validity."""

    def test_valid(self):
        assert Quote("binance", 100.0, 100.1).is_valid

    @pytest.mark.parametrize("bid, ask", [
        (0.0, 100.0),
        (100.0, 0.0),
        (None, 100.0),
        (-1.0, 100.0),
        (float("nan"), 100.0),
        (100.0, float("inf")),
    ])
    def test_invalid(self, bid, ask):
        assert not Quote("binance", bid, ask).is_valid

    @pytest.mark.parametrize("bid, ask", [("nan", 100), (100, "inf"), (100, 0), (-5, 100)])
    def test_from_dict_rejects_invalid_sides(self, bid, ask):
        with pytest.raises(ValueError):
            Quote.from_dict({"exchange": "binance", "bid": bid, "ask": ask})


class TestSpread:
    """Test spread arithmetic."""

    def test_spread(self):
        assert calculate_spread(100.0, 100.3) == pytest.approx(0.003)

    def test_negative_spread(self):
        assert calculate_spread(100.0, 99.0) == pytest.approx(-0.01)

    def test_split_pair(self):
        assert split_pair("BTC/USDT") == ("BTC", "USDT")

    def test_split_invalid_pair(self):
        with pytest.raises(ValueError):
            split_pair("BTCUSDT")

    def test_snapshot(self):
        snapshot = PairSnapshot("BTC/USDT", Quote("a", 99.0, 100.0), Quote("b", 100.3, 100.4))

        assert snapshot.spread == pytest.approx(0.003)
        assert snapshot.is_cross_exchange


class TestOpportunity:
    """Test opportunity payload conversion."""

    def test_to_dict(self):
        opportunity = Opportunity(
            pair="ETH/USDT",
            best_buy=Quote("a", 99.0, 100.0),
            best_sell=Quote("b", 100.3, 100.4),
            spread=0.003,
            timestamp=1700000000000,
        )

        assert opportunity.to_dict() == {
            "timestamp": 1700000000000,
            "pair": "ETH/USDT",
            "best_buy": {"exchange": "a", "bid": 99.0, "ask": 100.0},
            "best_sell": {"exchange": "b", "bid": 100.3, "ask": 100.4},
            "spread": 0.003,
        }
        assert opportunity.base_asset == "ETH"

    def test_from_dict_recomputes_missing_spread(self):
        opportunity = Opportunity.from_dict({
            "pair": "BTC/USDT",
            "bestBuy": {"exchange": "a", "bid": "99", "ask": "100"},
            "bestSell": {"exchange": "b", "bid": "100.3", "ask": "100.4"},
        })

        assert opportunity.spread == pytest.approx(0.003)
        assert opportunity.best_buy.ask == 100.0
