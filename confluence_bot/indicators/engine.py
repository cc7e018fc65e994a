"""
Indicator math: EMA, RSI (Wilder), MACD, Bollinger Bands.

All functions take a close-price Series and return Series aligned to its index.
Warm-up rows are NaN; callers must treat NaN as "not available yet".
"""

from __future__ import annotations
from typing import Tuple

import numpy as np
import pandas as pd

from confluence_bot.core.config import IndicatorSettings


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError(f"period must be > 0, got {period}")


def _as_series(prices) -> pd.Series:
    return pd.Series(np.asarray(prices, dtype=float), index=getattr(prices, "index", None))


def _seeded_ewm(values: pd.Series, seed_at: int, seed: float, **ewm_args) -> pd.Series:
    """Recursive EMA over values[seed_at:] whose first value is replaced by `seed`. NaN before seed_at."""
    tail = values.iloc[seed_at:].copy()
    tail.iloc[0] = seed
    return tail.ewm(adjust=False, **ewm_args).mean().reindex(values.index)


def ema(prices: pd.Series, period: int) -> pd.Series:
    """EMA seeded with the SMA of the first `period` values (at index period-1)."""
    _check_period(period)
    prices = _as_series(prices)
    if len(prices) < period:
        return pd.Series(np.nan, index=prices.index)
    return _seeded_ewm(prices, period - 1, prices.iloc[:period].mean(), span=period)


def rsi(prices: pd.Series, period: int = 14) -> pd.Series:
    """
    Wilder RSI. First value at index `period` from the simple mean of the first
    `period` gains/losses, then smoothed: avg = (avg * (period - 1) + x) / period.
    """
    _check_period(period)
    prices = _as_series(prices)
    if len(prices) <= period:
        return pd.Series(np.nan, index=prices.index)
    delta = prices.diff()
    gains = delta.clip(lower=0)
    losses = (-delta).clip(lower=0)
    # delta[0] is NaN; the seed window is deltas 1..period
    avg_gain = _seeded_ewm(gains, period, gains.iloc[1:period + 1].mean(), alpha=1.0 / period)
    avg_loss = _seeded_ewm(losses, period, losses.iloc[1:period + 1].mean(), alpha=1.0 / period)
    out = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss.where(avg_loss != 0))
    return out.mask(avg_loss == 0, 100.0)


def macd(
    prices: pd.Series,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> Tuple[pd.Series, pd.Series, pd.Series]:
    """
    MACD line, signal line, histogram. The signal EMA runs over the defined part of
    the MACD line only; all three stay NaN until the signal warm-up is complete.
    """
    prices = _as_series(prices)
    line = ema(prices, fast) - ema(prices, slow)
    defined = line.dropna()
    signal_line = ema(defined, signal).reindex(prices.index)
    line = line.where(signal_line.notna())
    hist = line - signal_line
    return line, signal_line, hist


def bollinger_bands(
    prices: pd.Series,
    period: int = 20,
    std_dev: float = 2.0,
) -> Tuple[pd.Series, pd.Series, pd.Series]:
    """Upper, middle (SMA), lower. Uses population standard deviation of the window."""
    _check_period(period)
    prices = _as_series(prices)
    middle = prices.rolling(period).mean()
    std = prices.rolling(period).std(ddof=0)
    return middle + std_dev * std, middle, middle - std_dev * std


def ema_column(period: int) -> str:
    return f"ema_{period}"


def compute_indicators(df: pd.DataFrame, settings: IndicatorSettings = None) -> pd.DataFrame:
    """Add indicator columns to an OHLCV DataFrame. No lookahead."""
    settings = settings or IndicatorSettings()
    df = df.copy()
    close = df["close"].astype(float)
    for period in settings.ema_periods:
        df[ema_column(period)] = ema(close, period)
    df["rsi"] = rsi(close, settings.rsi_period)
    df["macd"], df["macd_signal"], df["macd_hist"] = macd(
        close, settings.macd_fast, settings.macd_slow, settings.macd_signal
    )
    df["bb_upper"], df["bb_middle"], df["bb_lower"] = bollinger_bands(
        close, settings.bollinger_period, settings.bollinger_std_dev
    )
    return df
