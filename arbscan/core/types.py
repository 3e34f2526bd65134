"""
Shared types and data structures for the arbitrage scanner.
This file breaks circular imports between modules.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..exchanges.base import Quote


def calculate_spread(buy_ask: float, sell_bid: float) -> float:
    """Relative spread of selling at ``sell_bid`` after buying at ``buy_ask``."""
    return (sell_bid - buy_ask) / buy_ask


def split_pair(pair: str) -> Tuple[str, str]:
    """Split ``BASE/QUOTE`` into its assets."""
    base, _, quote = pair.partition("/")
    if not base or not quote:
        raise ValueError(f"Invalid pair: {pair!r}")
    return base, quote


@dataclass(frozen=True)
class PairSnapshot:
    """Best prices for one pair across exchanges in one cycle."""
    pair: str
    best_buy: Quote   # lowest ask
    best_sell: Quote  # highest bid
    quotes: Tuple[Quote, ...] = ()

    @property
    def spread(self) -> float:
        return calculate_spread(self.best_buy.ask, self.best_sell.bid)

    @property
    def is_cross_exchange(self) -> bool:
        return self.best_buy.exchange != self.best_sell.exchange


@dataclass(frozen=True)
class Opportunity:
    """Detected arbitrage opportunity."""
    pair: str
    best_buy: Quote
    best_sell: Quote
    spread: float
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    @classmethod
    def from_snapshot(cls, snapshot: PairSnapshot) -> "Opportunity":
        return cls(
            pair=snapshot.pair,
            best_buy=snapshot.best_buy,
            best_sell=snapshot.best_sell,
            spread=snapshot.spread,
        )

    @property
    def base_asset(self) -> str:
        return split_pair(self.pair)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "pair": self.pair,
            "best_buy": self.best_buy.to_dict(),
            "best_sell": self.best_sell.to_dict(),
            "spread": self.spread,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Opportunity":
        """Parse an opportunity-shaped payload.

        Accepts ``best_buy``/``bestBuy`` style keys. The spread is recomputed
        from the quotes when absent.
        """
        best_buy = Quote.from_dict(data.get("best_buy") or data["bestBuy"])
        best_sell = Quote.from_dict(data.get("best_sell") or data["bestSell"])
        spread = data.get("spread")
        if spread is None:
            spread = calculate_spread(best_buy.ask, best_sell.bid)
        timestamp = data.get("timestamp")
        return cls(
            pair=str(data["pair"]),
            best_buy=best_buy,
            best_sell=best_sell,
            spread=float(spread),
            timestamp=int(timestamp) if timestamp is not None else int(time.time() * 1000),
        )


@dataclass
class ExecutionResult:
    """Terminal outcome of one execution attempt."""
    ok: bool
    reason: Optional[str] = None
    error: Optional[str] = None
    note: Optional[str] = None
    # True once a buy has filled, so partial failures are visible
    buy_executed: bool = False
    order_id: Optional[str] = None
    withdrawal_id: Optional[str] = None
    base_amount: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"ok": self.ok, "buy_executed": self.buy_executed}
        for key in ("reason", "error", "note", "order_id", "withdrawal_id", "base_amount"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result
