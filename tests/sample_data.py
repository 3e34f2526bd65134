"""Sample market data and fake exchanges for testing the scanner."""

from typing import Dict, List, Optional

from arbscan.config import Config, DetectorConfig, ExecutionConfig
from arbscan.exchanges.base import BaseExchange, OrderResult, Quote, WithdrawalResult


# pair -> exchange -> (bid, ask)
SAMPLE_BOOKS = {
    "BTC/USDT": {
        "binance": (50000.0, 50010.0),
        "bybit": (50210.0, 50220.0),
        "okx": (50100.0, 50105.0),
    },
    "ETH/USDT": {
        "binance": (3000.0, 3000.5),
        "bybit": (3001.0, 3001.5),
        "okx": (3000.2, 3000.7),
    },
}


class FakeExchange(BaseExchange):
    """In-memory exchange with scripted quotes and trading results."""

    def __init__(self, name: str, quotes: Optional[Dict[str, tuple]] = None,
                 can_quote: bool = True, can_order: bool = True, can_withdraw: bool = True):
        super().__init__(name)
        self.quotes = quotes or {}
        self.can_quote = can_quote
        self.can_order = can_order
        self.can_withdraw = can_withdraw

        self.order_result = OrderResult(True, order_id=f"{name}-order-1")
        self.withdraw_result = WithdrawalResult(True, tx_id=f"{name}-wd-1")
        self.quote_error: Optional[Exception] = None

        self.quote_calls: List[str] = []
        self.buy_calls: List[tuple] = []
        self.withdraw_calls: List[tuple] = []
        self.closed = False

    def has_quote_capability(self) -> bool:
        return self.can_quote

    def has_order_capability(self) -> bool:
        return self.can_order

    def has_withdraw_capability(self) -> bool:
        return self.can_withdraw

    async def fetch_quote(self, pair: str) -> Optional[Quote]:
        self.quote_calls.append(pair)
        if self.quote_error:
            raise self.quote_error
        if pair not in self.quotes:
            return None
        bid, ask = self.quotes[pair]
        return Quote(exchange=self.name, bid=bid, ask=ask)

    async def place_market_buy(self, pair: str, amount: float) -> OrderResult:
        self.buy_calls.append((pair, amount))
        return self.order_result

    async def withdraw(self, asset: str, amount: float, address: str) -> WithdrawalResult:
        self.withdraw_calls.append((asset, amount, address))
        return self.withdraw_result

    async def close(self) -> None:
        self.closed = True


def make_exchanges(books: Dict[str, Dict[str, tuple]] = None) -> Dict[str, FakeExchange]:
    """Build fake exchanges from a pair -> exchange -> (bid, ask) layout."""
    books = SAMPLE_BOOKS if books is None else books
    exchanges: Dict[str, FakeExchange] = {}
    for pair, by_exchange in books.items():
        for name, prices in by_exchange.items():
            exchanges.setdefault(name, FakeExchange(name)).quotes[pair] = prices
    return exchanges


def make_config(pairs: List[str] = None, min_spread: float = 0.002, scan_interval_ms: int = 10,
                trade_notional: float = 10.0, withdraw_addresses: Dict = None) -> Config:
    """Config with test-friendly defaults."""
    return Config(
        exchanges={},
        detector=DetectorConfig(
            pairs=pairs or ["BTC/USDT", "ETH/USDT"],
            scan_interval_ms=scan_interval_ms,
            min_spread=min_spread,
        ),
        execution=ExecutionConfig(trade_notional=trade_notional),
        withdraw_addresses=withdraw_addresses or {},
    )
