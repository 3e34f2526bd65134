"""Arbitrage trade execution across exchanges."""

import math
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger

from ..config import Config
from ..exchanges.base import BaseExchange, OrderResult, WithdrawalResult
from ..notify import events
from ..notify.events import EventBus
from .address_book import WithdrawalAddressBook
from .types import ExecutionResult, Opportunity, calculate_spread

REASON_SPREAD_TOO_LOW = "spread too low"
REASON_CANNOT_ORDER = "buy exchange cannot create orders via API"
REASON_ORDER_FAILED = "order failed"
REASON_NO_ADDRESS = "no destination address"
REASON_WITHDRAW_UNSUPPORTED = "withdraw not supported"
REASON_WITHDRAW_FAILED = "withdraw failed"
REASON_EXECUTION_ERROR = "execution error"
REASON_INVALID_OPPORTUNITY = "invalid opportunity"

AWAITING_DEPOSIT_NOTE = (
    "buy placed and withdraw requested - deposit confirmation and the final "
    "sell are not automated; confirm the deposit and sell manually."
)


class ExecutionStep(Enum):
    """Execution sequence position."""
    VALIDATE = "validate"
    BUY = "buy"
    RESOLVE_ADDRESS = "resolve_address"
    WITHDRAW = "withdraw"
    AWAITING_DEPOSIT = "awaiting_deposit"


class ArbitrageExecutor:
    """Drives buy -> withdraw -> await deposit for one opportunity.

    Every step short-circuits on failure. Nothing is rolled back: once the buy
    has filled, later failures leave the bought asset on the buy exchange and
    the result says so via ``buy_executed``. Calls are not idempotent.
    """

    def __init__(self, config: Config, exchanges: Dict[str, BaseExchange],
                 address_book: WithdrawalAddressBook, event_bus: EventBus):
        self.config = config
        self.exchanges = exchanges
        self.address_book = address_book
        self.event_bus = event_bus
        self.min_spread = config.detector.min_spread
        self.trade_notional = config.execution.trade_notional

        self.executions_started = 0
        self.last_step: Optional[ExecutionStep] = None

    def _log(self, message: str, level: str = "INFO"):
        logger.log(level, message)
        self.event_bus.publish(events.LOG, {"message": message})

    async def execute(self, opportunity: Opportunity) -> ExecutionResult:
        """Execute an opportunity. Never raises for exchange failures."""
        self.executions_started += 1
        logger.info(
            f"Executing arbitrage: {opportunity.pair} "
            f"{opportunity.best_buy.exchange} -> {opportunity.best_sell.exchange}"
        )
        state: Dict[str, Any] = {"buy_executed": False}

        try:
            return await self._execute(opportunity, state)
        except Exception as e:
            self._log(f"Execution of {opportunity.pair} failed unexpectedly: {e}", "ERROR")
            return ExecutionResult(
                ok=False,
                reason=REASON_EXECUTION_ERROR,
                error=str(e),
                buy_executed=state["buy_executed"],
                order_id=state.get("order_id"),
                base_amount=state.get("base_amount"),
            )

    async def _execute(self, opportunity: Opportunity, state: Dict[str, Any]) -> ExecutionResult:
        best_buy = opportunity.best_buy
        best_sell = opportunity.best_sell

        # Step 1: revalidate; the operator may trigger a stale opportunity
        self.last_step = ExecutionStep.VALIDATE
        if not (best_buy.is_valid and best_sell.is_valid):
            self._log(f"Rejected {opportunity.pair}: invalid quotes {best_buy} / {best_sell}", "WARNING")
            return ExecutionResult(ok=False, reason=REASON_INVALID_OPPORTUNITY)

        spread = calculate_spread(best_buy.ask, best_sell.bid)
        if not math.isfinite(spread) or spread < self.min_spread:
            self._log(f"Rejected {opportunity.pair}: spread {spread:.4%} below {self.min_spread:.4%}")
            return ExecutionResult(ok=False, reason=REASON_SPREAD_TOO_LOW)

        # Step 2: market buy sized by fixed notional
        self.last_step = ExecutionStep.BUY
        base_amount = self.trade_notional / best_buy.ask
        state["base_amount"] = base_amount
        asset = opportunity.base_asset

        buy_exchange = self.exchanges.get(best_buy.exchange)
        if buy_exchange is None or not buy_exchange.has_order_capability():
            self._log(f"Buy exchange {best_buy.exchange} cannot create orders via API")
            return ExecutionResult(ok=False, reason=REASON_CANNOT_ORDER, base_amount=base_amount)

        try:
            order = await buy_exchange.place_market_buy(opportunity.pair, base_amount)
        except Exception as e:
            order = OrderResult(False, error=str(e))
        if not order.success:
            self._log(f"Buy on {best_buy.exchange} failed: {order.error}", "ERROR")
            return ExecutionResult(
                ok=False,
                reason=REASON_ORDER_FAILED,
                error=order.error,
                base_amount=base_amount,
            )
        state["buy_executed"] = True
        state["order_id"] = order.order_id
        # Withdraw the filled amount, not the requested one
        withdraw_amount = order.filled_qty if order.filled_qty > 0 else base_amount
        fill_price = order.avg_price or best_buy.ask
        self._log(f"Bought {withdraw_amount:.8f} {asset} on {best_buy.exchange} at {fill_price}")

        # Step 3: destination on the sell exchange
        self.last_step = ExecutionStep.RESOLVE_ADDRESS
        address = self.address_book.lookup(best_sell.exchange, asset)
        if not address:
            self._log(
                f"No destination address configured for {asset} on {best_sell.exchange}. "
                f"{asset} remains on {best_buy.exchange}.",
                "WARNING",
            )
            return ExecutionResult(
                ok=False,
                reason=REASON_NO_ADDRESS,
                buy_executed=True,
                order_id=order.order_id,
                base_amount=base_amount,
            )

        # Step 4: withdraw from the buy exchange
        self.last_step = ExecutionStep.WITHDRAW
        if not buy_exchange.has_withdraw_capability():
            self._log(
                f"Buy exchange {best_buy.exchange} does not support programmatic withdraw. "
                f"{asset} remains on {best_buy.exchange}.",
                "WARNING",
            )
            return ExecutionResult(
                ok=False,
                reason=REASON_WITHDRAW_UNSUPPORTED,
                buy_executed=True,
                order_id=order.order_id,
                base_amount=base_amount,
            )

        try:
            withdrawal = await buy_exchange.withdraw(asset, withdraw_amount, address)
        except Exception as e:
            withdrawal = WithdrawalResult(False, error=str(e))
        if not withdrawal.success:
            self._log(f"Withdraw failed: {withdrawal.error}", "ERROR")
            return ExecutionResult(
                ok=False,
                reason=REASON_WITHDRAW_FAILED,
                error=withdrawal.error,
                buy_executed=True,
                order_id=order.order_id,
                base_amount=base_amount,
            )
        self._log(f"Withdraw requested from {best_buy.exchange} -> tx id {withdrawal.tx_id}")

        # Step 5: deposit confirmation and the sell leg are manual
        self.last_step = ExecutionStep.AWAITING_DEPOSIT
        self._log(f"Waiting for deposit on {best_sell.exchange} (not polled automatically)")
        return ExecutionResult(
            ok=True,
            note=AWAITING_DEPOSIT_NOTE,
            buy_executed=True,
            order_id=order.order_id,
            withdrawal_id=withdrawal.tx_id,
            base_amount=base_amount,
        )

    def get_execution_summary(self) -> Dict[str, Any]:
        """Get execution summary."""
        return {
            "trade_notional": self.trade_notional,
            "min_spread": self.min_spread,
            "executions_started": self.executions_started,
            "last_step": self.last_step.value if self.last_step else None,
            "withdraw_destinations": self.address_book.exchanges(),
        }
