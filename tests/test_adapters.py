#Description: Exchange, indicator and notification adapters against httpx mock transports.
import json
from urllib.parse import parse_qs

import httpx
import pytest

from adapters.binance_spot import BinanceSpotAdapter
from adapters.sendgrid import SendGridChannel
from adapters.taapi import TAAPIAdapter
from adapters.telegram import TelegramChannel
from utils.errors import ExchangeError
from tests.conftest import filled_order


def mock_client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def binance(handler, **kw):
    return BinanceSpotAdapter(api_key="key", api_secret="secret", client=mock_client(handler), **kw)


# ---------------- TAAPI ----------------

def test_indicator_retries_after_body_error():
    replies = iter([{"error": "rate limited"}, {"value": 20123.5}])
    sleeps = []

    def handler(request):
        assert request.url.params["symbol"] == "BTC/USDT"
        return httpx.Response(200, json=next(replies))

    ta = TAAPIAdapter("k", client=mock_client(handler), max_attempts=2, backoff_seconds=15, sleep=sleeps.append)
    assert ta.get_sma("BTC", "USD", "1d", 200) == 20123.5
    assert sleeps == [15]


def test_indicator_gives_up_after_max_attempts():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"error": "nope"})

    ta = TAAPIAdapter("k", client=mock_client(handler), max_attempts=2, backoff_seconds=1, sleep=lambda s: None)
    assert ta.get_indicator("BTC", "USD", "1d", 200) is None
    assert len(calls) == 2


def test_indicator_transport_error_counts_as_attempt():
    state = {"n": 0}

    def handler(request):
        state["n"] += 1
        if state["n"] == 1:
            raise httpx.ConnectTimeout("timed out", request=request)
        return httpx.Response(200, json={"value": 3})

    ta = TAAPIAdapter("k", client=mock_client(handler), max_attempts=2, sleep=lambda s: None)
    assert ta.get_sma("ETH", "EUR", "1d", 200) == 3.0


def test_indicator_without_key_is_unavailable():
    def handler(request):
        raise AssertionError("no request expected")

    ta = TAAPIAdapter(api_key="", client=mock_client(handler))
    ta.api_key = None
    assert ta.get_sma("BTC", "USD", "1d", 200) is None


# ---------------- Binance ----------------

def test_market_buy_signs_request_and_parses_fills():
    seen = {}

    def handler(request):
        seen["headers"] = request.headers
        seen["body"] = parse_qs(request.content.decode())
        return httpx.Response(200, json=filled_order(total_cost=50).raw)

    res = binance(handler).market_buy("BTCUSD", quote_order_qty=23.96)

    assert res.is_success
    assert res.order_id == 12345
    assert res.cummulative_quote_qty == 50
    assert seen["headers"]["X-MBX-APIKEY"] == "key"
    body = seen["body"]
    assert body["quoteOrderQty"] == ["23.96"]
    assert body["type"] == ["MARKET"]
    assert "signature" in body and "timestamp" in body
    assert "quantity" not in body


def test_market_buy_by_quantity_sends_quantity_only():
    seen = {}

    def handler(request):
        seen["body"] = parse_qs(request.content.decode())
        return httpx.Response(200, json=filled_order(total_cost=50).raw)

    binance(handler).market_buy("BTCUSD", quantity=0.00001)

    assert seen["body"]["quantity"] == ["0.00001"]
    assert "quoteOrderQty" not in seen["body"]


def test_market_buy_rejection_becomes_failure_result():
    def handler(request):
        return httpx.Response(400, json={"code": -2010, "msg": "Account has insufficient balance for requested action."})

    res = binance(handler).market_buy("BTCUSD", quantity=0.001)
    assert not res.is_success
    assert res.code == -2010
    assert res.msg.startswith("Account has insufficient balance")


def test_market_buy_transport_error_becomes_failure_result():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    res = binance(handler).market_buy("BTCUSD", quantity=0.001)
    assert not res.is_success
    assert "BTCUSD" in res.msg


def test_account_info_credential_error_is_distinguishable():
    def handler(request):
        return httpx.Response(401, json={"code": -2015, "msg": "Invalid API-key, IP, or permissions for action."})

    with pytest.raises(ExchangeError) as exc:
        binance(handler).get_account_info()
    assert exc.value.is_credential_error


def test_account_info_and_ticker():
    def handler(request):
        if request.url.path == "/api/v3/account":
            return httpx.Response(200, json={"canTrade": True, "balances": [
                {"asset": "USD", "free": "120.50", "locked": "0.00"}]})
        return httpx.Response(200, json={"symbol": "BTCUSD", "bidPrice": "25000.10", "askPrice": "25001.00"})

    api = binance(handler)
    info = api.get_account_info()
    assert info.can_trade
    assert info.balance("USD").free == 120.5
    assert info.balance("EUR") is None
    assert api.get_book_ticker("BTCUSD").bid_price == 25000.1


@pytest.mark.parametrize("flags,url", [
    ({}, "https://api.binance.com"),
    ({"usnet": True}, "https://api.binance.us"),
    ({"testnet": True}, "https://testnet.binance.vision"),
])
def test_endpoint_selection(flags, url):
    kw = {"testnet": False, "usnet": False}
    kw.update(flags)
    assert binance(lambda r: httpx.Response(200, json={}), **kw).base_url == url


def test_order_details():
    details = BinanceSpotAdapter(api_key="k", api_secret="s").get_order_details("BTC", "USD", filled_order(total_cost=50))
    assert details.order_id == 12345
    assert details.total_cost == 50
    assert details.average_asset_value == 25000
    assert details.commission_asset == "BTC"
    assert details.fills == ["- 0.002 BTC @ 25000 USD (fee 0.000002 BTC)"]
    assert details.transaction_date_time == "2023-11-14 22:13:20 UTC"


# ---------------- Notification channels ----------------

def test_telegram_send():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["json"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    ch = TelegramChannel("tok", "42", client=mock_client(handler))
    assert ch.send("Subject", "body")
    assert seen["url"].endswith("/bottok/sendMessage")
    assert seen["json"]["text"] == "*Subject*\n\nbody"
    assert seen["json"]["chat_id"] == "42"


def test_telegram_http_error_raises():
    ch = TelegramChannel("tok", "42", client=mock_client(lambda r: httpx.Response(500)))
    with pytest.raises(httpx.HTTPStatusError):
        ch.send(None, "body")


def test_sendgrid_send():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["json"] = json.loads(request.content)
        return httpx.Response(202)

    ch = SendGridChannel("sg", "to@example.com", "from@example.com", client=mock_client(handler))
    assert ch.send("Buy order executed (BTCUSD)", "done")
    assert seen["auth"] == "Bearer sg"
    assert seen["json"]["subject"] == "Buy order executed (BTCUSD)"
    assert seen["json"]["personalizations"][0]["to"][0]["email"] == "to@example.com"


def test_disabled_channel_sends_nothing():
    ch = SendGridChannel("sg", "to@example.com", "from@example.com",
                         client=mock_client(lambda r: httpx.Response(500)))
    ch.secret = None
    assert not ch.enabled
    assert ch.send("s", "b") is False
