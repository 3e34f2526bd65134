"""Composition root wiring exchanges, scanner, executor and events together."""

import asyncio
from typing import Any, Dict, Optional, Union

from loguru import logger

from .config import Config
from .core.address_book import WithdrawalAddressBook
from .core.aggregator import PriceAggregator
from .core.detector import OpportunityDetector
from .core.executor import ArbitrageExecutor, REASON_EXECUTION_ERROR, REASON_INVALID_OPPORTUNITY
from .core.types import ExecutionResult, Opportunity
from .exchanges.base import BaseExchange
from .exchanges.factory import create_exchanges
from .notify import events
from .notify.events import EventBus


class ArbitrageBot:
    """Cross-exchange arbitrage scanner with manually triggered execution."""

    def __init__(self, config: Config, exchanges: Optional[Dict[str, BaseExchange]] = None,
                 event_bus: Optional[EventBus] = None):
        self.config = config
        self.exchanges = exchanges if exchanges is not None else create_exchanges(config)
        self.event_bus = event_bus or EventBus()
        self.address_book = WithdrawalAddressBook.from_config(config.withdraw_addresses)

        self.aggregator = PriceAggregator(self.exchanges)
        self.detector = OpportunityDetector(config, self.aggregator, self.event_bus)
        self.executor = ArbitrageExecutor(config, self.exchanges, self.address_book, self.event_bus)

        self._scan_task: Optional[asyncio.Task] = None

        logger.info(f"Exchanges: {', '.join(self.exchanges) or 'none'}")
        logger.info(f"Pairs: {', '.join(config.detector.pairs)}")
        logger.info(f"Trade notional: {config.execution.trade_notional}")
        logger.info(f"Withdraw destinations configured: {len(self.address_book)}")

    def announce_exchanges(self):
        self.event_bus.publish(events.EXCHANGES, list(self.exchanges))

    async def start(self):
        """Start the scan loop as a background task."""
        if self._scan_task and not self._scan_task.done():
            return
        if len(self.exchanges) < 2:
            logger.warning("Fewer than two exchanges initialized; no spreads can be found")
        self.announce_exchanges()
        self._scan_task = asyncio.create_task(self.detector.run())
        logger.info("Scan loop task started")

    async def stop(self):
        """Stop the scan loop and release exchange connections."""
        self.detector.stop()
        if self._scan_task:
            if not self.detector.running:
                # The task has not reached the loop yet
                self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Scan loop ended with error: {e}")
            self._scan_task = None
        await self.close()

    async def run_scanner(self, max_cycles: Optional[int] = None):
        """Run the scan loop in the foreground."""
        self.announce_exchanges()
        try:
            await self.detector.run(max_cycles=max_cycles)
        finally:
            await self.close()

    async def close(self):
        for exchange in self.exchanges.values():
            await exchange.close()

    async def execute_manual(self, payload: Union[Opportunity, Dict[str, Any]]) -> ExecutionResult:
        """Manual execution trigger.

        Always returns a result, which is also broadcast as ``exec_result``.
        """
        try:
            opportunity = payload if isinstance(payload, Opportunity) else Opportunity.from_dict(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Rejected malformed execution request: {e!r}")
            result = ExecutionResult(ok=False, reason=REASON_INVALID_OPPORTUNITY, error=repr(e))
        else:
            try:
                result = await self.executor.execute(opportunity)
            except Exception as e:
                logger.error(f"Manual execution failed: {e}")
                result = ExecutionResult(ok=False, reason=REASON_EXECUTION_ERROR, error=str(e))

        logger.info(f"Execution result: {result.to_dict()}")
        self.event_bus.publish(events.EXEC_RESULT, result.to_dict())
        return result

    def public_config(self) -> Dict[str, Any]:
        """Read-only configuration snapshot."""
        return {
            "exchanges": list(self.exchanges),
            "pairs": list(self.config.detector.pairs),
            "scan_interval_ms": self.config.detector.scan_interval_ms,
            "min_spread": self.config.detector.min_spread,
        }

    def get_status(self) -> Dict[str, Any]:
        return {
            "scanner": self.detector.get_status(),
            "execution": self.executor.get_execution_summary(),
            "events": self.event_bus.get_stats(),
        }
