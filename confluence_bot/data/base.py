"""Abstract market data source."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List

from confluence_bot.core.types import Candle


class MarketDataSource(ABC):
    """Delivers closed, time-ordered candles for one symbol and interval."""

    @abstractmethod
    def get_candles(self, symbol: str, interval: str, limit: int = 300) -> List[Candle]:
        """Return up to `limit` most recent closed candles, oldest first. A still-forming candle is never included."""
        pass
