#Description: Base adapter utilities, including signing and request.

import time
import hmac
import hashlib
from urllib.parse import urlencode

import httpx

from utils.config import settings
from utils.errors import ExchangeError
from utils.logging import logger

class BinanceBaseAdapter:
    BASE_URL = "https://api.binance.com"
    US_URL = "https://api.binance.us"
    TESTNET_URL = "https://testnet.binance.vision"
    RECV_WINDOW = 5000

    def __init__(self, api_key: str | None = None, api_secret: str | None = None,
                 testnet: bool | None = None, usnet: bool | None = None,
                 client: httpx.Client | None = None):
        self.api_key = api_key or settings.BINANCE_KEY
        self.api_secret = api_secret or settings.BINANCE_SECRET
        testnet = settings.BINANCE_TESTNET if testnet is None else testnet
        usnet = settings.BINANCE_USNET if usnet is None else usnet
        if testnet:
            self.base_url = self.TESTNET_URL
        elif usnet:
            self.base_url = self.US_URL
        else:
            self.base_url = self.BASE_URL
        self.client = client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)

    def _headers(self):
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        if self.api_key:
            headers["X-MBX-APIKEY"] = self.api_key
        return headers

    def _sign(self, params: dict) -> str:
        params = {k: v for k, v in params.items() if v is not None}
        params["recvWindow"] = self.RECV_WINDOW
        params["timestamp"] = int(time.time() * 1000)
        query = urlencode(params)
        signature = hmac.new(self.api_secret.encode(), query.encode(), hashlib.sha256).hexdigest()
        return f"{query}&signature={signature}"

    def _decode(self, r: httpx.Response):
        try:
            data = r.json()
        except ValueError:
            r.raise_for_status()
            raise ExchangeError(f"Unexpected non-JSON response ({r.status_code})")
        # Binance error bodies look like {"code": -2010, "msg": "..."}
        if isinstance(data, dict) and "code" in data and "msg" in data and r.status_code >= 400:
            raise ExchangeError(data["msg"], data["code"])
        r.raise_for_status()
        return data

    def get(self, path: str, params: dict | None = None, signed: bool = False):
        url = self.base_url + path
        if signed:
            r = self.client.get(f"{url}?{self._sign(params or {})}", headers=self._headers())
        else:
            r = self.client.get(url, params=params)
        return self._decode(r)

    def post(self, path: str, params: dict):
        url = self.base_url + path
        r = self.client.post(url, headers=self._headers(), content=self._sign(params))
        data = self._decode(r)
        logger.debug(f"POST {path} -> {data}")
        return data
