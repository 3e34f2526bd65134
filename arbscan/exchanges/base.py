"""Base exchange interface for cross-exchange arbitrage."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .rate_limiter import RateLimiter


@dataclass(frozen=True)
class Quote:
    """Best bid/ask of one exchange for one pair."""
    exchange: str
    bid: float
    ask: float

    @property
    def is_valid(self) -> bool:
        """Both sides present, finite and positive."""
        if self.bid is None or self.ask is None:
            return False
        return (math.isfinite(self.bid) and math.isfinite(self.ask)
                and self.bid > 0 and self.ask > 0)

    def to_dict(self) -> Dict[str, Any]:
        return {"exchange": self.exchange, "bid": self.bid, "ask": self.ask}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quote":
        """Parse a quote payload, rejecting non-finite or non-positive sides."""
        quote = cls(
            exchange=str(data["exchange"]),
            bid=float(data["bid"]),
            ask=float(data["ask"]),
        )
        if not quote.is_valid:
            raise ValueError(f"Invalid quote from {quote.exchange}: bid={quote.bid} ask={quote.ask}")
        return quote


@dataclass
class OrderResult:
    """Order placement result."""
    success: bool
    order_id: Optional[str] = None
    filled_qty: float = 0.0
    avg_price: float = 0.0
    error: Optional[str] = None


@dataclass
class WithdrawalResult:
    """Withdrawal request result."""
    success: bool
    tx_id: Optional[str] = None
    error: Optional[str] = None


class BaseExchange(ABC):
    """Base exchange interface.

    Capability queries are plain booleans. Network operations never raise for
    expected failures: quotes come back as ``None`` when unavailable and
    orders/withdrawals report failure through their result objects.
    """

    def __init__(self, name: str, rate_limiter: Optional[RateLimiter] = None):
        self.name = name
        # Shared by every caller of this adapter (scan loop and executions)
        self.rate_limiter = rate_limiter or RateLimiter()

    @abstractmethod
    def has_quote_capability(self) -> bool:
        """Whether the exchange can report best bid/ask."""

    @abstractmethod
    def has_order_capability(self) -> bool:
        """Whether market orders can be placed via the API."""

    @abstractmethod
    def has_withdraw_capability(self) -> bool:
        """Whether withdrawals can be requested via the API."""

    @abstractmethod
    async def fetch_quote(self, pair: str) -> Optional[Quote]:
        """Fetch current best bid/ask, or ``None`` when unavailable."""

    @abstractmethod
    async def place_market_buy(self, pair: str, amount: float) -> OrderResult:
        """Place a market buy of ``amount`` base asset."""

    @abstractmethod
    async def withdraw(self, asset: str, amount: float, address: str) -> WithdrawalResult:
        """Request a withdrawal of ``amount`` of ``asset`` to ``address``."""

    async def close(self) -> None:
        """Release network resources."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
