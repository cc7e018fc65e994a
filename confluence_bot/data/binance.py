"""
Binance spot klines with retry and rate-limit handling.
"""

from __future__ import annotations
import logging
import time
from typing import List

from binance.client import Client
from binance.exceptions import BinanceAPIException

from confluence_bot.core.types import Candle
from confluence_bot.data.base import MarketDataSource

logger = logging.getLogger("confluence_bot.data.binance")


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on 429 or 418 (rate limit) with exponential backoff."""
    def decorator(f):
        def wrapped(*args, **kwargs):
            last_exc = None
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except BinanceAPIException as e:
                    last_exc = e
                    if e.status_code in (429, 418) and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
            raise last_exc
        return wrapped
    return decorator


def parse_klines(raw: list) -> List[Candle]:
    """Convert raw Binance kline rows to Candles."""
    return [
        Candle(
            time=int(k[0]),
            open=float(k[1]),
            high=float(k[2]),
            low=float(k[3]),
            close=float(k[4]),
            volume=float(k[5]),
        )
        for k in raw
    ]


class BinanceMarketData(MarketDataSource):
    """Public Binance spot klines. Keys are optional for market data."""

    def __init__(self, api_key: str = "", api_secret: str = "", client: Client = None):
        self._client = client or Client(api_key or None, api_secret or None)

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def get_candles(self, symbol: str, interval: str, limit: int = 300) -> List[Candle]:
        raw = self._client.get_klines(symbol=symbol, interval=interval, limit=limit)
        # k[6] is the close time; the last kline is still forming until it passes
        now_ms = int(time.time() * 1000)
        closed = [k for k in raw if int(k[6]) < now_ms]
        candles = parse_klines(closed)
        logger.debug("Fetched %d closed %s candles for %s", len(candles), interval, symbol)
        return candles
