#Description: Shared fakes for the trading client, indicator source, notification channels and order store.
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest

from adapters.binance_spot import order_details
from models.schemas import AccountInfo, Balance, BookTicker, OrderResult
from services.notifier import Notifier


def filled_order(total_cost=50.0, qty=0.002, order_id=12345, symbol="BTCUSD"):
    price = total_cost / qty
    return OrderResult.from_response({
        "symbol": symbol,
        "orderId": order_id,
        "transactTime": 1700000000000,
        "status": "FILLED",
        "executedQty": str(qty),
        "cummulativeQuoteQty": str(total_cost),
        "fills": [{"price": str(price), "qty": str(qty), "commission": "0.000002",
                   "commissionAsset": "BTC", "tradeId": 1}],
    })


class FakeTrading:
    def __init__(self, result=None, free=1000.0, bid=25000.0, can_trade=True,
                 api_key="key", api_secret="secret"):
        self.api_key = api_key
        self.api_secret = api_secret
        self.result = result or filled_order()
        self.free = free
        self.bid = bid
        self.can_trade = can_trade
        self.buys = []
        self.account_calls = 0

    def market_buy(self, pair, quantity=None, quote_order_qty=None):
        self.buys.append((pair, quantity, quote_order_qty))
        return self.result

    def get_account_info(self):
        self.account_calls += 1
        return AccountInfo(canTrade=self.can_trade, balances=[Balance(asset="USD", free=self.free)])

    def get_book_ticker(self, pair):
        return BookTicker(symbol=pair, bidPrice=self.bid)

    def get_order_details(self, asset, currency, result):
        return order_details(asset, currency, result)


class FakeIndicators:
    def __init__(self, value=20000.0):
        self.value = value
        self.calls = []

    def get_sma(self, asset, currency, interval, period):
        self.calls.append((asset, currency, interval, period))
        return self.value


class FakeChannel:
    def __init__(self, name="chat", fail=False, enabled=True):
        self.name = name
        self.fail = fail
        self.enabled = enabled
        self.sent = []

    def send(self, subject, body):
        if self.fail:
            raise RuntimeError(f"{self.name} is down")
        self.sent.append((subject, body))
        return True


class FakeStore:
    def __init__(self, ok=True):
        self.ok = ok
        self.saved = []

    def save_order(self, result):
        self.saved.append(result)
        return self.ok


@pytest.fixture
def channels():
    return [FakeChannel("chat"), FakeChannel("email")]


@pytest.fixture
def notifier(channels):
    return Notifier(channels)
