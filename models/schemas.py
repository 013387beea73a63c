#Description: Pydantic schemas for trades, weighting parameters, and exchange payloads.

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, timezone


class WeightSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    max_ath_factor: float = Field(alias="maxATHFactor")
    ath: float = Field(alias="ATH")
    mayer_multiple_avg: float = Field(alias="mayerMultipleAvg")
    mayer_multiple_max: float = Field(alias="mayerMultipleMax")


class TradeSpec(BaseModel):
    """One configured purchase. No schedule means buy once at startup."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    asset: Optional[str] = None
    currency: Optional[str] = None
    quantity: Optional[float] = None
    quote_order_qty: Optional[float] = Field(default=None, alias="quoteOrderQty")
    schedule: Optional[str] = None
    weight: Optional[WeightSpec] = None
    # Set when the raw entry could not be parsed; the scheduler reports it as invalid
    parse_error: Optional[str] = Field(default=None, exclude=True)

    @property
    def pair(self) -> str:
        return f"{self.asset}{self.currency}"


class OrderFill(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    price: float
    qty: float
    commission: float = 0.0
    commission_asset: str = Field(default="", alias="commissionAsset")
    trade_id: Optional[int] = Field(default=None, alias="tradeId")


class OrderResult(BaseModel):
    """
    Outcome of one market buy. A result without an order id is a failure and carries
    the upstream msg/code instead of fill data.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    order_id: Optional[int] = Field(default=None, alias="orderId")
    symbol: Optional[str] = None
    status: Optional[str] = None
    executed_qty: float = Field(default=0.0, alias="executedQty")
    cummulative_quote_qty: float = Field(default=0.0, alias="cummulativeQuoteQty")
    transact_time: Optional[int] = Field(default=None, alias="transactTime")
    fills: List[OrderFill] = Field(default_factory=list)
    msg: Optional[str] = None
    code: Optional[int] = None
    raw: dict = Field(default_factory=dict, exclude=True)

    @property
    def is_success(self) -> bool:
        return self.order_id is not None

    @classmethod
    def from_response(cls, payload: dict) -> "OrderResult":
        out = cls.model_validate(payload)
        out.raw = dict(payload)
        return out

    @classmethod
    def failure(cls, msg: str | None, code: int | None = None) -> "OrderResult":
        return cls(msg=msg, code=code, raw={"msg": msg, "code": code})


class OrderDetails(BaseModel):
    order_id: int
    transaction_date_time: str
    asset: str
    currency: str
    quantity: float
    total_cost: float
    average_asset_value: float
    commissions: float
    commission_asset: str
    fills: List[str] = Field(default_factory=list)


class Balance(BaseModel):
    asset: str
    free: float = 0.0
    locked: float = 0.0


class AccountInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    can_trade: bool = Field(default=False, alias="canTrade")
    balances: List[Balance] = Field(default_factory=list)

    def balance(self, asset: str) -> Optional[Balance]:
        for b in self.balances:
            if b.asset == asset:
                return b
        return None


class BookTicker(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    symbol: str
    bid_price: float = Field(alias="bidPrice")
    ask_price: float = Field(default=0.0, alias="askPrice")


def ms_to_datetime(ms: int | None) -> datetime:
    if ms is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
