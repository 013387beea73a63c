#Description: Dynamic order sizing from the Mayer multiple (price / 200d SMA) and distance from all-time-high.
from __future__ import annotations

from typing import NamedTuple, Optional

from models.schemas import TradeSpec, WeightSpec
from utils.config import settings
from utils.errors import InvalidWeightSpec
from utils.logging import logger


def supports_weighting(currency: str | None, supported: str | None = None) -> bool:
    """Weighting is only calibrated for one fiat quote currency."""
    return currency is not None and currency == (supported or settings.WEIGHT_CURRENCY)


def validate_weight(weight: WeightSpec) -> None:
    if weight.mayer_multiple_max == 0:
        raise InvalidWeightSpec("mayerMultipleMax must not be 0")
    if weight.mayer_multiple_avg == weight.mayer_multiple_max:
        raise InvalidWeightSpec("mayerMultipleAvg and mayerMultipleMax must differ")
    if weight.ath <= 0:
        raise InvalidWeightSpec("ATH must be greater than 0")


class WeightBreakdown(NamedTuple):
    mayer_multiple: float
    ath_factor: float
    mayer_weight_constant: float
    current_weight_multiple: float
    mayer_factor: float
    adjusted: float


def weight_breakdown(base_quote_order_qty: float, weight: WeightSpec,
                     moving_average: float, current_price: float) -> WeightBreakdown:
    """
    Scale the configured spend by how cheap the asset looks.

    athFactor = (maxATHFactor - price / ATH) ** 2
    mayerFactor = max(0, (1 - mm / mmMax) / (1 - mmAvg / mmMax)), mm = price / SMA

    The adjusted spend is rounded to cents; 0.0 means "skip this purchase".
    """
    mayer_multiple = current_price / moving_average

    ath_factor = weight.max_ath_factor - current_price / weight.ath
    ath_factor *= ath_factor

    mayer_weight_constant = 1 / (1 - weight.mayer_multiple_avg / weight.mayer_multiple_max)
    current_weight_multiple = 1 - mayer_multiple / weight.mayer_multiple_max

    # Above mmMax the product goes negative: buy nothing, never "negative"
    mayer_factor = max(0.0, mayer_weight_constant * current_weight_multiple)

    adjusted = round(base_quote_order_qty * mayer_factor * ath_factor, 2)
    return WeightBreakdown(mayer_multiple, ath_factor, mayer_weight_constant,
                           current_weight_multiple, mayer_factor, adjusted)


def compute_adjusted_spend(base_quote_order_qty: float, weight: WeightSpec,
                           moving_average: float, current_price: float) -> float:
    return weight_breakdown(base_quote_order_qty, weight, moving_average, current_price).adjusted


class WeightService:
    """Gathers the market inputs for compute_adjusted_spend."""

    def __init__(self, trading, indicators, interval: str | None = None, period: int | None = None):
        self.trading = trading
        self.indicators = indicators
        self.interval = interval or settings.SMA_INTERVAL
        self.period = period or settings.SMA_PERIOD

    def resolve_spend(self, trade: TradeSpec) -> Optional[float]:
        """
        Weighted spend for this firing, or None when the inputs are unavailable and the
        static quoteOrderQty should be used instead.
        """
        sma = self.indicators.get_sma(trade.asset, trade.currency, self.interval, self.period)
        if not sma:
            logger.warning(f"No {self.period} period SMA for {trade.pair}, using static amount")
            return None
        try:
            current_price = self.trading.get_book_ticker(trade.pair).bid_price
        except Exception as e:
            logger.warning(f"Book ticker for {trade.pair} unavailable ({e}), using static amount")
            return None
        b = weight_breakdown(trade.quote_order_qty, trade.weight, sma, current_price)
        logger.debug(
            f"sma={sma} currentPrice={current_price} mayerMultiple={b.mayer_multiple} "
            f"athFactor={b.ath_factor} mayerWeightConstant={b.mayer_weight_constant} "
            f"currentWeightMultiple={b.current_weight_multiple} mayerFactor={b.mayer_factor} "
            f"updatedQuoteOrderQty={b.adjusted}"
        )
        return b.adjusted
