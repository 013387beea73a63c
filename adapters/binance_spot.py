#Description: Binance spot adapter: market buys, account balances, book ticker, order detail normalisation.

import httpx

from adapters.binance_common import BinanceBaseAdapter
from models.schemas import OrderResult, OrderDetails, AccountInfo, BookTicker, ms_to_datetime
from utils.errors import ExchangeError
from utils.logging import logger


def _fmt(value: float) -> str:
    # Binance rejects scientific notation
    return f"{value:.8f}".rstrip("0").rstrip(".")


class BinanceSpotAdapter(BinanceBaseAdapter):

    def market_buy(self, pair: str, quantity: float | None = None, quote_order_qty: float | None = None) -> OrderResult:
        """
        Place a MARKET BUY sized either by base quantity or by quote amount to spend.
        Exchange rejections and transport errors come back as a failed OrderResult.
        """
        params = {
            "symbol": pair,
            "side": "BUY",
            "type": "MARKET",
            "newOrderRespType": "FULL",
        }
        if quantity is not None:
            params["quantity"] = _fmt(quantity)
        else:
            params["quoteOrderQty"] = _fmt(quote_order_qty)
        try:
            res = self.post("/api/v3/order", params)
        except ExchangeError as e:
            logger.warning(f"Binance rejected buy for {pair}: [{e.code}] {e.msg}")
            return OrderResult.failure(e.msg, e.code)
        except httpx.HTTPError as e:
            logger.exception(f"Buy order request failed for {pair}: {e}")
            return OrderResult.failure(f"Request failed for {pair}: {e}")
        return OrderResult.from_response(res)

    def get_account_info(self) -> AccountInfo:
        return AccountInfo.model_validate(self.get("/api/v3/account", signed=True))

    def get_book_ticker(self, pair: str) -> BookTicker:
        return BookTicker.model_validate(self.get("/api/v3/ticker/bookTicker", params={"symbol": pair}))

    def get_order_details(self, asset: str, currency: str, result: OrderResult) -> OrderDetails:
        return order_details(asset, currency, result)


def order_details(asset: str, currency: str, result: OrderResult) -> OrderDetails:
    """Normalise a filled order into the fields the notifications print."""
    quantity = result.executed_qty
    total_cost = result.cummulative_quote_qty
    commissions = sum(f.commission for f in result.fills)
    commission_asset = result.fills[0].commission_asset if result.fills else ""
    fills = [
        f"- {_fmt(f.qty)} {asset} @ {_fmt(f.price)} {currency} (fee {_fmt(f.commission)} {f.commission_asset})"
        for f in result.fills
    ]
    return OrderDetails(
        order_id=result.order_id,
        transaction_date_time=ms_to_datetime(result.transact_time).strftime("%Y-%m-%d %H:%M:%S UTC"),
        asset=asset,
        currency=currency,
        quantity=quantity,
        total_cost=total_cost,
        average_asset_value=round(total_cost / quantity, 8) if quantity else 0.0,
        commissions=round(commissions, 8),
        commission_asset=commission_asset,
        fills=fills,
    )
