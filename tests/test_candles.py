"""Unit tests for data.candles and data.binance."""

import math
from types import SimpleNamespace

import pytest
from binance.exceptions import BinanceAPIException

from confluence_bot.core.types import Candle
from confluence_bot.data import binance as binance_data
from confluence_bot.data.binance import BinanceMarketData, parse_klines
from confluence_bot.data.candles import OHLCV_COLUMNS, candles_to_frame, frame_to_candles

HOUR_MS = 3_600_000


def _candles(n=3):
    return [Candle(i * HOUR_MS, 100.0 + i, 101.0 + i, 99.0 + i, 100.5 + i, 10.0 * (i + 1)) for i in range(n)]


def test_candles_to_frame_columns_and_values():
    df = candles_to_frame(_candles())
    assert list(df.columns) == OHLCV_COLUMNS
    assert len(df) == 3
    assert df["close"].iloc[2] == 102.5
    assert df["time"].iloc[1] == HOUR_MS


def test_frame_to_candles_inverse():
    candles = _candles(5)
    assert frame_to_candles(candles_to_frame(candles)) == candles


def test_candles_to_frame_empty():
    assert candles_to_frame([]).empty


def test_candles_to_frame_rejects_non_increasing_time():
    candles = _candles(3)
    candles[2] = Candle(HOUR_MS, 1.0, 1.0, 1.0, 1.0, 1.0)
    with pytest.raises(ValueError):
        candles_to_frame(candles)


def test_candles_to_frame_rejects_non_finite():
    candles = _candles(3)
    candles[1] = Candle(HOUR_MS, 1.0, math.inf, 1.0, 1.0, 1.0)
    with pytest.raises(ValueError):
        candles_to_frame(candles)
    candles[1] = Candle(HOUR_MS, 1.0, 1.0, 1.0, math.nan, 1.0)
    with pytest.raises(ValueError):
        candles_to_frame(candles)


RAW_KLINES = [
    [0, "100.0", "101.0", "99.0", "100.5", "12.5", 3_599_999, "0", 10, "0", "0", "0"],
    [HOUR_MS, "100.5", "102.0", "100.0", "101.5", "8.0", 7_199_999, "0", 8, "0", "0", "0"],
]


def test_parse_klines():
    candles = parse_klines(RAW_KLINES)
    assert candles[0] == Candle(0, 100.0, 101.0, 99.0, 100.5, 12.5)
    assert candles[1].time == HOUR_MS


class _FakeClient:
    def __init__(self, failures=0, status_code=429, rows=None):
        self.calls = 0
        self.failures = failures
        self.status_code = status_code
        self.rows = RAW_KLINES if rows is None else rows

    def get_klines(self, symbol, interval, limit):
        self.calls += 1
        if self.calls <= self.failures:
            raise BinanceAPIException(
                SimpleNamespace(text="", request=None),
                self.status_code,
                '{"code": -1003, "msg": "Too many requests"}',
            )
        return self.rows[:limit]


def test_market_data_get_candles():
    client = _FakeClient()
    candles = BinanceMarketData(client=client).get_candles("BTCUSDT", "1h", limit=2)
    assert len(candles) == 2
    assert client.calls == 1


def test_market_data_retries_rate_limit(monkeypatch):
    monkeypatch.setattr(binance_data.time, "sleep", lambda s: None)
    client = _FakeClient(failures=2)
    candles = BinanceMarketData(client=client).get_candles("BTCUSDT", "1h", limit=2)
    assert len(candles) == 2
    assert client.calls == 3


def test_market_data_does_not_retry_other_errors(monkeypatch):
    monkeypatch.setattr(binance_data.time, "sleep", lambda s: None)
    client = _FakeClient(failures=1, status_code=400)
    with pytest.raises(BinanceAPIException):
        BinanceMarketData(client=client).get_candles("BTCUSDT", "1h")
    assert client.calls == 1


def test_market_data_drops_forming_candle():
    # close time in 2100: still open
    forming = [2 * HOUR_MS, "101.5", "103.0", "101.0", "102.0", "1.0", 4_102_444_800_000, "0", 1, "0", "0", "0"]
    client = _FakeClient(rows=RAW_KLINES + [forming])
    candles = BinanceMarketData(client=client).get_candles("BTCUSDT", "1h", limit=3)
    assert [c.time for c in candles] == [0, HOUR_MS]
