"""MACD cross: MACD line crosses its signal line on this bar, with optional EMA200 trend filter."""

from __future__ import annotations
import logging
from typing import Optional

import pandas as pd

from confluence_bot.core.types import ConfidenceTier, Direction, StrategyCandidate, StrategyName
from confluence_bot.indicators.engine import ema_column
from confluence_bot.strategies.base import BaseDetector, value_at

logger = logging.getLogger("confluence_bot.strategies.macd_cross")


class MacdCrossDetector(BaseDetector):
    """
    Long: prev macd <= prev signal and macd > signal (and close > EMA200 if filtered).
    Short: prev macd >= prev signal and macd < signal (and close < EMA200 if filtered).
    High tier when the histogram expands versus the previous bar.
    """

    name = StrategyName.MACD_CROSS

    def __init__(self, trend_period: int = 200, trend_filter: bool = True):
        self.trend_period = trend_period
        self.trend_filter = trend_filter

    def detect(self, df: pd.DataFrame, index: int) -> Optional[StrategyCandidate]:
        cur_macd = value_at(df, "macd", index)
        cur_sig = value_at(df, "macd_signal", index)
        prev_macd = value_at(df, "macd", index - 1)
        prev_sig = value_at(df, "macd_signal", index - 1)
        if None in (cur_macd, cur_sig, prev_macd, prev_sig):
            return None
        trend = value_at(df, ema_column(self.trend_period), index)
        if self.trend_filter and trend is None:
            return None

        close = float(df["close"].iloc[index])
        hist = cur_macd - cur_sig
        prev_hist = prev_macd - prev_sig
        tier = ConfidenceTier.HIGH if abs(hist) > abs(prev_hist) else ConfidenceTier.MEDIUM

        if prev_macd <= prev_sig and cur_macd > cur_sig:
            if self.trend_filter and not close > trend:
                logger.debug("MACD bullish cross rejected at %d: price below EMA %d", index, self.trend_period)
                return None
            return StrategyCandidate(
                strategy=self.name,
                direction=Direction.LONG,
                rationale=f"MACD bullish cross{self._trend_note('uptrend')}. Histogram: {hist:.2f}.",
                tier=tier,
            )
        if prev_macd >= prev_sig and cur_macd < cur_sig:
            if self.trend_filter and not close < trend:
                logger.debug("MACD bearish cross rejected at %d: price above EMA %d", index, self.trend_period)
                return None
            return StrategyCandidate(
                strategy=self.name,
                direction=Direction.SHORT,
                rationale=f"MACD bearish cross{self._trend_note('downtrend')}. Histogram: {hist:.2f}.",
                tier=tier,
            )
        return None

    def _trend_note(self, word: str) -> str:
        if not self.trend_filter:
            return ""
        return f" confirmed by EMA {self.trend_period} {word}"
