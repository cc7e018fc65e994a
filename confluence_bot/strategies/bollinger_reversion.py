"""
Bollinger mean reversion. A close that crosses outside a band is treated as
overextended: below the lower band -> long, above the upper band -> short, both
targeting a return toward the middle band.
"""

from __future__ import annotations
from typing import Optional

import pandas as pd

from confluence_bot.core.types import ConfidenceTier, Direction, StrategyCandidate, StrategyName
from confluence_bot.indicators.volume import volume_confirmation
from confluence_bot.strategies.base import BaseDetector, value_at


class BollingerReversionDetector(BaseDetector):
    """
    Long: close < lower and prev close >= prev lower.
    Short: close > upper and prev close <= prev upper.
    High tier when volume >= high_volume_ratio x trailing average.
    """

    name = StrategyName.BOLLINGER_BREAKOUT

    def __init__(self, volume_period: int = 20, high_volume_ratio: float = 1.2):
        self.volume_period = volume_period
        self.high_volume_ratio = high_volume_ratio

    def detect(self, df: pd.DataFrame, index: int) -> Optional[StrategyCandidate]:
        upper = value_at(df, "bb_upper", index)
        middle = value_at(df, "bb_middle", index)
        lower = value_at(df, "bb_lower", index)
        prev_upper = value_at(df, "bb_upper", index - 1)
        prev_lower = value_at(df, "bb_lower", index - 1)
        if None in (upper, middle, lower, prev_upper, prev_lower):
            return None
        close = float(df["close"].iloc[index])
        prev_close = float(df["close"].iloc[index - 1])
        high_volume = volume_confirmation(df, index, self.volume_period, self.high_volume_ratio).confirmed
        tier = ConfidenceTier.HIGH if high_volume else ConfidenceTier.MEDIUM

        if close < lower and prev_close >= prev_lower:
            return StrategyCandidate(
                strategy=self.name,
                direction=Direction.LONG,
                rationale=(
                    f"Price below lower Bollinger Band ({lower:.0f}) - mean reversion expected. "
                    f"Target: middle band ({middle:.0f})."
                ),
                tier=tier,
            )
        if close > upper and prev_close <= prev_upper:
            return StrategyCandidate(
                strategy=self.name,
                direction=Direction.SHORT,
                rationale=(
                    f"Price above upper Bollinger Band ({upper:.0f}) - mean reversion expected. "
                    f"Target: middle band ({middle:.0f})."
                ),
                tier=tier,
            )
        return None
