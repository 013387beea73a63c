#Description: TAAPI.io indicator adapter with bounded retry and linear backoff.

import time
from typing import Callable, Optional

import httpx

from utils.config import settings
from utils.logging import logger


class TAAPIAdapter:
    BASE_URL = "https://api.taapi.io"

    def __init__(self, api_key: str | None = None, client: httpx.Client | None = None,
                 max_attempts: int | None = None, backoff_seconds: float | None = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.api_key = api_key or settings.TAAPI_KEY
        self.client = client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self.max_attempts = max_attempts or settings.INDICATOR_MAX_ATTEMPTS
        self.backoff_seconds = settings.INDICATOR_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        self._sleep = sleep

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def _symbol(asset: str, currency: str) -> str:
        # The free tier only serves Binance USDT pairs
        quote = "USDT" if currency == "USD" else currency
        return f"{asset}/{quote}"

    def get_indicator(self, asset: str, currency: str, interval: str, period: int,
                      indicator: str = "sma") -> Optional[float]:
        """
        Fetch one indicator value.

        An error field in the response body, a transport error and a timeout all count as a
        failed attempt. Returns None once every attempt has failed.
        """
        if not self.enabled:
            logger.warning("No TA API key configured, indicator unavailable")
            return None

        params = {
            "secret": self.api_key,
            "exchange": "binance",
            "symbol": self._symbol(asset, currency),
            "interval": interval,
            "period": period,
        }
        url = f"{self.BASE_URL}/{indicator}"

        for attempt in range(1, self.max_attempts + 1):
            try:
                r = self.client.get(url, params=params)
                body = r.json()
                if body.get("error") is not None:
                    logger.warning(f"TA-API error (attempt {attempt}/{self.max_attempts}): {body['error']}")
                    if attempt < self.max_attempts:
                        self._sleep(self.backoff_seconds * attempt)
                    continue
                return float(body["value"])
            except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
                logger.error(f"TA-API request failed (attempt {attempt}/{self.max_attempts}): {e}")
        return None

    def get_sma(self, asset: str, currency: str, interval: str, period: int) -> Optional[float]:
        return self.get_indicator(asset, currency, interval, period, indicator="sma")
