"""Market data: candle ingestion and sources."""

from confluence_bot.data.base import MarketDataSource
from confluence_bot.data.candles import candles_to_frame, frame_to_candles

__all__ = ["MarketDataSource", "candles_to_frame", "frame_to_candles"]
