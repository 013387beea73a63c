#Description: Order executor: sizes one trade firing, places the market buy and fans out notifications.

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from models.schemas import TradeSpec, OrderResult, OrderDetails
from services.notifier import Notifier
from services.order_store import OrderStore
from services.weighting import WeightService, supports_weighting
from utils.config import settings
from utils.logging import logger


class ExecutionStatus(str, Enum):
    FILLED = "filled"
    FAILED = "failed"      # exchange rejected the order
    SKIPPED = "skipped"    # weighting resolved to 0
    ERROR = "error"        # unexpected exception inside this firing


@dataclass
class ExecutionOutcome:
    status: ExecutionStatus
    pair: str
    spend: Optional[float] = None
    result: Optional[OrderResult] = None
    low_balance: bool = False


class ExecutionService:
    def __init__(self, trading, notifier: Notifier, store: OrderStore,
                 weights: WeightService | None = None, low_balance_threshold: float | None = None):
        self.trading = trading
        self.notifier = notifier
        self.store = store
        self.weights = weights
        self.low_balance_threshold = (settings.LOW_BALANCE_THRESHOLD
                                      if low_balance_threshold is None else low_balance_threshold)

    def execute(self, trade: TradeSpec) -> ExecutionOutcome:
        """Never raises: one bad firing must not take the schedule down with it."""
        try:
            return self._execute(trade)
        except Exception as e:
            logger.exception(f"Execution failed for {trade.pair}: {e}")
            return ExecutionOutcome(ExecutionStatus.ERROR, trade.pair)

    def _resolve_spend(self, trade: TradeSpec) -> Optional[float]:
        spend = trade.quote_order_qty
        if (trade.weight is not None and spend is not None and self.weights is not None
                and supports_weighting(trade.currency)):
            weighted = self.weights.resolve_spend(trade)
            if weighted is not None:
                logger.info(f"Weighted spend for {trade.pair}: {weighted} {trade.currency} (base {spend})")
                spend = weighted
        return spend

    def _execute(self, trade: TradeSpec) -> ExecutionOutcome:
        pair = trade.pair
        spend = self._resolve_spend(trade)

        if trade.quantity is None and spend == 0:
            logger.warning(f"Weighting algorithm skipped purchase ({pair})")
            self.notifier.notify(f"⚠️ Weighting algorithm skipped purchase ({pair})", "")
            return ExecutionOutcome(ExecutionStatus.SKIPPED, pair, spend=0.0)

        if trade.quantity is not None:
            result = self.trading.market_buy(pair, quantity=trade.quantity)
        else:
            result = self.trading.market_buy(pair, quote_order_qty=spend)

        if not result.is_success:
            self._report_failure(pair, result)
            return ExecutionOutcome(ExecutionStatus.FAILED, pair, spend=spend, result=result)

        details = self.trading.get_order_details(trade.asset, trade.currency, result)
        self._report_success(pair, result, details)
        low = self._check_balance(trade.currency, details.total_cost)
        return ExecutionOutcome(ExecutionStatus.FILLED, pair, spend=spend, result=result, low_balance=low)

    def _report_success(self, pair: str, result: OrderResult, details: OrderDetails):
        first_price = result.fills[0].price if result.fills else details.average_asset_value
        logger.success(
            f"Successfully purchased: {details.quantity} {details.asset} @ {first_price} {details.currency}. "
            f"Spent: {details.total_cost} {details.currency}."
        )
        logger.debug(json.dumps(result.raw))

        if not self.store.save_order(result):
            logger.warning(f"Order {details.order_id} executed but was not stored")

        self.notifier.notify(
            f"✅ Buy order executed ({pair})",
            f"_Order ID:_ {details.order_id}\n"
            f"_Date:_ {details.transaction_date_time}\n"
            f"_Quantity:_ {details.quantity} {details.asset}\n"
            f"_Total:_ {details.total_cost} {details.currency}\n"
            f"_Average Value:_ {details.average_asset_value} {details.currency}/{details.asset}\n"
            f"_Fees:_ {details.commissions} {details.commission_asset}\n\n"
            + "\n".join(details.fills) + "\n",
        )

    def _report_failure(self, pair: str, result: OrderResult):
        error_text = result.msg or f"Unexpected error placing buy order for {pair}"
        logger.error(error_text)
        self.notifier.notify(f"❌ Buy order failed ({pair})", f"```{error_text}```")

    def _check_balance(self, currency: str, total_cost: float) -> bool:
        """Warn once fewer than `low_balance_threshold` buys of this size remain affordable."""
        try:
            balance = self.trading.get_account_info().balance(currency)
        except Exception as e:
            logger.warning(f"Balance check for {currency} failed: {e}")
            return False
        free = balance.free if balance else 0.0
        if total_cost * self.low_balance_threshold > free:
            logger.warning(f"Balance low ({currency}): {free} free")
            self.notifier.notify(f"⚠️ Balance low ({currency})", f"_Balance Free:_ {free} {currency}")
            return True
        return False
