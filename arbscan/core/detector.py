"""Arbitrage opportunity detection across exchanges."""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, List, Optional

from loguru import logger

from ..config import Config
from ..notify import events
from ..notify.events import EventBus
from .aggregator import PriceAggregator
from .types import Opportunity, PairSnapshot


class ScannerState(Enum):
    """Scan loop lifecycle."""
    STOPPED = "stopped"
    RUNNING = "running"


class OpportunityDetector:
    """Runs the aggregator over every pair on a fixed cadence.

    Emits a ticker event for every pair with a snapshot and an opportunity
    event when the spread clears the threshold across two different
    exchanges. Never executes anything itself.
    """

    def __init__(self, config: Config, aggregator: PriceAggregator, event_bus: EventBus):
        self.config = config
        self.aggregator = aggregator
        self.event_bus = event_bus
        self.pairs: List[str] = list(config.detector.pairs)
        self.min_spread = config.detector.min_spread
        self.scan_interval = config.detector.scan_interval_ms / 1000

        self.state = ScannerState.STOPPED
        self._stop_event = asyncio.Event()

        self.cycles_completed = 0
        self.opportunities_found = 0
        self.last_cycle_started: Optional[float] = None
        self.last_cycle_ms: Optional[int] = None

    @property
    def running(self) -> bool:
        return self.state == ScannerState.RUNNING

    def is_opportunity(self, snapshot: PairSnapshot) -> bool:
        """Spread at or above threshold on two distinct exchanges."""
        return snapshot.spread >= self.min_spread and snapshot.is_cross_exchange

    async def process_pair(self, pair: str) -> Optional[Opportunity]:
        """Aggregate one pair and emit its events."""
        snapshot = await self.aggregator.aggregate(pair)
        if snapshot is None:
            return None

        spread = snapshot.spread
        self.event_bus.publish(events.TICKER, {
            "pair": pair,
            "buy": snapshot.best_buy.to_dict(),
            "sell": snapshot.best_sell.to_dict(),
            "spread": spread,
        })

        if not self.is_opportunity(snapshot):
            return None

        opportunity = Opportunity.from_snapshot(snapshot)
        self.opportunities_found += 1
        logger.info(
            f"Opportunity {pair}: buy {opportunity.best_buy.exchange} @ {opportunity.best_buy.ask}, "
            f"sell {opportunity.best_sell.exchange} @ {opportunity.best_sell.bid}, "
            f"spread {spread:.4%}"
        )
        self.event_bus.publish(events.OPPORTUNITY, opportunity.to_dict())
        return opportunity

    async def scan_cycle(self) -> List[Opportunity]:
        """Process every configured pair once, in order."""
        started = time.time()
        self.last_cycle_started = started
        opportunities = []

        for pair in self.pairs:
            try:
                opportunity = await self.process_pair(pair)
            except Exception as e:
                logger.error(f"Error scanning {pair}: {e}")
                continue
            if opportunity:
                opportunities.append(opportunity)

        self.cycles_completed += 1
        self.last_cycle_ms = int((time.time() - started) * 1000)
        logger.debug(f"Scan cycle {self.cycles_completed} finished in {self.last_cycle_ms}ms")
        return opportunities

    async def run(self, max_cycles: Optional[int] = None):
        """Scan until stopped, sleeping ``scan_interval`` between cycles."""
        if self.running:
            logger.warning("Scanner already running")
            return

        # Discard a stop requested while no loop was running
        self._stop_event.clear()
        self.state = ScannerState.RUNNING
        logger.info(
            f"Scanner started: {len(self.pairs)} pairs, interval {self.scan_interval:.1f}s, "
            f"min spread {self.min_spread:.2%}"
        )

        cycles = 0
        try:
            while not self._stop_event.is_set():
                try:
                    await self.scan_cycle()
                except Exception as e:
                    logger.error(f"Error in scan loop: {e}")
                cycles += 1

                if max_cycles is not None and cycles >= max_cycles:
                    break

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.scan_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._stop_event.clear()
            self.state = ScannerState.STOPPED
            logger.info("Scanner stopped")

    def stop(self):
        """Request the loop to exit at the next cycle boundary."""
        if not self.running:
            return
        logger.info("Stopping scanner")
        self._stop_event.set()

    def get_status(self) -> Dict[str, Any]:
        """Get scanner status."""
        return {
            "state": self.state.value,
            "pairs": self.pairs,
            "cycles_completed": self.cycles_completed,
            "opportunities_found": self.opportunities_found,
            "last_cycle_started": self.last_cycle_started,
            "last_cycle_ms": self.last_cycle_ms,
        }
