"""Cross-exchange best bid/ask aggregation."""

import asyncio
from typing import Dict, List, Optional

from loguru import logger

from ..exchanges.base import BaseExchange, Quote
from .types import PairSnapshot


class PriceAggregator:
    """Collects quotes for a pair from every exchange and picks the best sides."""

    def __init__(self, exchanges: Dict[str, BaseExchange]):
        # Iteration order of this dict is the tie-break order
        self.exchanges = exchanges

    async def _fetch(self, exchange: BaseExchange, pair: str) -> Optional[Quote]:
        if not exchange.has_quote_capability():
            return None
        return await exchange.fetch_quote(pair)

    async def collect_quotes(self, pair: str) -> List[Quote]:
        """Fetch quotes from all exchanges in parallel, keeping only valid ones."""
        exchanges = list(self.exchanges.values())
        results = await asyncio.gather(
            *(self._fetch(exchange, pair) for exchange in exchanges),
            return_exceptions=True,
        )

        quotes = []
        for exchange, result in zip(exchanges, results):
            if isinstance(result, BaseException):
                logger.debug(f"Quote fetch for {pair} on {exchange.name} failed: {result}")
                continue
            if result is None or not result.is_valid:
                continue
            quotes.append(result)
        return quotes

    async def aggregate(self, pair: str) -> Optional[PairSnapshot]:
        """Best buy (lowest ask) and best sell (highest bid) for a pair.

        Returns None when fewer than two exchanges have a valid quote. Ties go
        to the exchange that comes first in configured order.
        """
        quotes = await self.collect_quotes(pair)
        if len(quotes) < 2:
            logger.debug(f"Only {len(quotes)} valid quote(s) for {pair}, skipping")
            return None

        best_buy = quotes[0]
        best_sell = quotes[0]
        for quote in quotes[1:]:
            if quote.ask < best_buy.ask:
                best_buy = quote
            if quote.bid > best_sell.bid:
                best_sell = quote

        return PairSnapshot(
            pair=pair,
            best_buy=best_buy,
            best_sell=best_sell,
            quotes=tuple(quotes),
        )
