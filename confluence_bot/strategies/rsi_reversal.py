"""RSI reversal: RSI leaves the oversold / overbought zone on this bar."""

from __future__ import annotations
from typing import Optional

import pandas as pd

from confluence_bot.core.types import ConfidenceTier, Direction, StrategyCandidate, StrategyName
from confluence_bot.strategies.base import BaseDetector, value_at


class RsiReversalDetector(BaseDetector):
    """Long: prev <= oversold < cur. Short: prev >= overbought > cur."""

    name = StrategyName.RSI_REVERSAL

    def __init__(self, oversold: float = 30.0, overbought: float = 70.0, high_tier_band: float = 5.0):
        self.oversold = oversold
        self.overbought = overbought
        self.high_tier_band = high_tier_band

    def detect(self, df: pd.DataFrame, index: int) -> Optional[StrategyCandidate]:
        cur = value_at(df, "rsi", index)
        prev = value_at(df, "rsi", index - 1)
        if cur is None or prev is None:
            return None
        if prev <= self.oversold < cur:
            return StrategyCandidate(
                strategy=self.name,
                direction=Direction.LONG,
                rationale=f"RSI exiting oversold (< {self.oversold:g}). Current: {cur:.1f}, previous: {prev:.1f}.",
                tier=ConfidenceTier.HIGH if cur < self.oversold + self.high_tier_band else ConfidenceTier.MEDIUM,
            )
        if prev >= self.overbought > cur:
            return StrategyCandidate(
                strategy=self.name,
                direction=Direction.SHORT,
                rationale=f"RSI exiting overbought (> {self.overbought:g}). Current: {cur:.1f}, previous: {prev:.1f}.",
                tier=ConfidenceTier.HIGH if cur > self.overbought - self.high_tier_band else ConfidenceTier.MEDIUM,
            )
        return None
