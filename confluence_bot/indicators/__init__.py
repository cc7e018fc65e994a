"""Indicators: EMA, RSI, MACD, Bollinger Bands, volume confirmation."""

from confluence_bot.indicators.engine import (
    ema,
    rsi,
    macd,
    bollinger_bands,
    compute_indicators,
    ema_column,
)
from confluence_bot.indicators.volume import VolumeCheck, average_volume, volume_confirmation

__all__ = [
    "ema",
    "rsi",
    "macd",
    "bollinger_bands",
    "compute_indicators",
    "ema_column",
    "VolumeCheck",
    "average_volume",
    "volume_confirmation",
]
