"""Tests for cross-exchange price aggregation."""

import pytest

from arbscan.core.aggregator import PriceAggregator
from sample_data import FakeExchange, make_exchanges


class TestPriceAggregator:
    """Test best bid/ask selection."""

    def setup_method(self):
        self.exchanges = make_exchanges()
        self.aggregator = PriceAggregator(self.exchanges)

    @pytest.mark.asyncio
    async def test_picks_lowest_ask_and_highest_bid(self):
        snapshot = await self.aggregator.aggregate("BTC/USDT")

        assert snapshot.best_buy.exchange == "binance"
        assert snapshot.best_buy.ask == 50010.0
        assert snapshot.best_sell.exchange == "bybit"
        assert snapshot.best_sell.bid == 50210.0
        assert snapshot.spread == pytest.approx((50210.0 - 50010.0) / 50010.0)
        assert snapshot.is_cross_exchange
        assert len(snapshot.quotes) == 3

    @pytest.mark.asyncio
    async def test_queries_every_exchange(self):
        await self.aggregator.aggregate("ETH/USDT")

        for exchange in self.exchanges.values():
            assert exchange.quote_calls == ["ETH/USDT"]

    @pytest.mark.asyncio
    async def test_unlisted_pair_returns_none(self):
        assert await self.aggregator.aggregate("DOGE/USDT") is None

    @pytest.mark.asyncio
    async def test_single_quote_returns_none(self):
        aggregator = PriceAggregator(make_exchanges({"BTC/USDT": {"binance": (100.0, 101.0)}}))
        assert await aggregator.aggregate("BTC/USDT") is None

    @pytest.mark.asyncio
    async def test_invalid_quotes_are_excluded(self):
        aggregator = PriceAggregator(make_exchanges({
            "BTC/USDT": {
                "binance": (100.0, 101.0),
                "bybit": (0.0, 99.0),
                "okx": (102.0, 103.0),
            }
        }))

        snapshot = await aggregator.aggregate("BTC/USDT")

        assert [q.exchange for q in snapshot.quotes] == ["binance", "okx"]
        assert snapshot.best_buy.exchange == "binance"
        assert snapshot.best_sell.exchange == "okx"

    @pytest.mark.asyncio
    async def test_only_one_valid_quote_returns_none(self):
        aggregator = PriceAggregator(make_exchanges({
            "BTC/USDT": {"binance": (100.0, 101.0), "bybit": (100.0, 0.0)}
        }))
        assert await aggregator.aggregate("BTC/USDT") is None

    @pytest.mark.asyncio
    async def test_failing_exchange_is_skipped(self):
        self.exchanges["bybit"].quote_error = RuntimeError("boom")

        snapshot = await self.aggregator.aggregate("BTC/USDT")

        assert snapshot is not None
        assert snapshot.best_sell.exchange == "okx"
        assert "bybit" not in [q.exchange for q in snapshot.quotes]

    @pytest.mark.asyncio
    async def test_exchange_without_quote_capability_is_skipped(self):
        self.exchanges["bybit"].can_quote = False

        snapshot = await self.aggregator.aggregate("BTC/USDT")

        assert self.exchanges["bybit"].quote_calls == []
        assert snapshot.best_sell.exchange == "okx"

    @pytest.mark.asyncio
    async def test_ties_go_to_first_configured_exchange(self):
        exchanges = {
            "okx": FakeExchange("okx", {"BTC/USDT": (100.0, 101.0)}),
            "binance": FakeExchange("binance", {"BTC/USDT": (100.0, 101.0)}),
        }

        snapshot = await PriceAggregator(exchanges).aggregate("BTC/USDT")

        assert snapshot.best_buy.exchange == "okx"
        assert snapshot.best_sell.exchange == "okx"
        assert not snapshot.is_cross_exchange

    @pytest.mark.asyncio
    async def test_same_exchange_can_win_both_sides(self):
        aggregator = PriceAggregator(make_exchanges({
            "BTC/USDT": {"binance": (100.5, 100.6), "bybit": (100.0, 101.0)}
        }))

        snapshot = await aggregator.aggregate("BTC/USDT")

        assert snapshot.best_buy.exchange == "binance"
        assert snapshot.best_sell.exchange == "binance"
