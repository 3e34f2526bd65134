"""ccxt-backed exchange adapter."""

from typing import Any, Optional

from ccxt.base.errors import BadSymbol, ExchangeError, NetworkError
from loguru import logger

from .base import BaseExchange, OrderResult, Quote, WithdrawalResult
from .rate_limiter import RateLimiter


class CcxtExchange(BaseExchange):
    """Adapter around a single async ccxt client.

    The client is shared by the scan loop and manual executions; ccxt async
    clients are safe for concurrent coroutines, and all calls go through the
    adapter's rate limiter.
    """

    def __init__(self, name: str, client: Any, rate_limiter: Optional[RateLimiter] = None):
        super().__init__(name, rate_limiter)
        self.client = client
        self._markets_loaded = False

    def _has(self, feature: str) -> bool:
        has = getattr(self.client, "has", None) or {}
        return bool(has.get(feature))

    def _has_credentials(self) -> bool:
        return bool(getattr(self.client, "apiKey", None)) and bool(getattr(self.client, "secret", None))

    def has_quote_capability(self) -> bool:
        return self._has("fetchTicker")

    def has_order_capability(self) -> bool:
        return self._has("createMarketOrder") and self._has_credentials()

    def has_withdraw_capability(self) -> bool:
        return self._has("withdraw") and self._has_credentials()

    async def _ensure_markets(self) -> None:
        if not self._markets_loaded:
            async with self.rate_limiter:
                await self.client.load_markets()
            self._markets_loaded = True

    async def fetch_quote(self, pair: str) -> Optional[Quote]:
        """Fetch best bid/ask from the ticker endpoint."""
        if not self.has_quote_capability():
            return None

        try:
            async with self.rate_limiter:
                ticker = await self.client.fetch_ticker(pair)
        except BadSymbol:
            logger.debug(f"{self.name} does not list {pair}")
            return None
        except NetworkError as e:
            logger.warning(f"{self.name} network error fetching {pair}: {e}")
            return None
        except ExchangeError as e:
            logger.debug(f"{self.name} rejected ticker request for {pair}: {e}")
            return None

        if not ticker:
            return None

        bid = ticker.get("bid")
        ask = ticker.get("ask")
        if bid is None or ask is None:
            logger.debug(f"{self.name} ticker for {pair} has no bid/ask")
            return None

        return Quote(exchange=self.name, bid=float(bid), ask=float(ask))

    async def place_market_buy(self, pair: str, amount: float) -> OrderResult:
        """Place a market buy order."""
        try:
            await self._ensure_markets()
            amount = float(self.client.amount_to_precision(pair, amount))
            async with self.rate_limiter:
                order = await self.client.create_market_order(pair, "buy", amount)
        except Exception as e:
            logger.error(f"{self.name} market buy {amount} {pair} failed: {e}")
            return OrderResult(False, error=str(e))

        order = order or {}
        return OrderResult(
            success=True,
            order_id=str(order["id"]) if order.get("id") is not None else None,
            filled_qty=float(order.get("filled") or amount),
            avg_price=float(order.get("average") or 0.0),
        )

    async def withdraw(self, asset: str, amount: float, address: str) -> WithdrawalResult:
        """Request a withdrawal."""
        try:
            async with self.rate_limiter:
                tx = await self.client.withdraw(asset, amount, address)
        except Exception as e:
            logger.error(f"{self.name} withdraw {amount} {asset} failed: {e}")
            return WithdrawalResult(False, error=str(e))

        tx = tx or {}
        tx_id = tx.get("id") or tx.get("txid")
        return WithdrawalResult(
            success=True,
            tx_id=str(tx_id) if tx_id is not None else None,
        )

    async def close(self) -> None:
        """Close the underlying ccxt client."""
        try:
            await self.client.close()
            logger.info(f"{self.name} disconnected")
        except Exception as e:
            logger.error(f"Error disconnecting from {self.name}: {e}")
