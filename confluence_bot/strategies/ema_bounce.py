"""
EMA bounce: price tests the support EMA (21) inside a tolerance band and closes back
on the trend side of the long EMA (200) with a confirming candle body.
"""

from __future__ import annotations
from typing import Optional

import pandas as pd

from confluence_bot.core.types import ConfidenceTier, Direction, StrategyCandidate, StrategyName
from confluence_bot.indicators.engine import ema_column
from confluence_bot.strategies.base import BaseDetector, value_at


def _touched(price: float, level: float, tolerance: float) -> bool:
    return level * (1 - tolerance) <= price <= level * (1 + tolerance)


class EmaBounceDetector(BaseDetector):
    """
    Long: low within tolerance of EMA21, close > EMA21, close > EMA200, close > open.
    Falls back to the same test against EMA50 (stronger level, always high tier).
    Short: high within tolerance of EMA21, close < EMA21, close < EMA200, close < open.
    """

    name = StrategyName.EMA_BOUNCE

    def __init__(
        self,
        support_period: int = 21,
        strong_period: int = 50,
        trend_period: int = 200,
        tolerance: float = 0.015,
    ):
        self.support_period = support_period
        self.strong_period = strong_period
        self.trend_period = trend_period
        self.tolerance = tolerance

    def detect(self, df: pd.DataFrame, index: int) -> Optional[StrategyCandidate]:
        support = value_at(df, ema_column(self.support_period), index)
        strong = value_at(df, ema_column(self.strong_period), index)
        trend = value_at(df, ema_column(self.trend_period), index)
        if support is None or strong is None or trend is None:
            return None
        bar = df.iloc[index]
        close, open_, high, low = float(bar["close"]), float(bar["open"]), float(bar["high"]), float(bar["low"])

        if close > trend and close > open_:
            if _touched(low, support, self.tolerance) and close > support:
                return StrategyCandidate(
                    strategy=self.name,
                    direction=Direction.LONG,
                    rationale=(
                        f"Price bounced off EMA {self.support_period} ({support:.0f}) with bullish close. "
                        f"Trend support from EMA {self.trend_period}."
                    ),
                    tier=ConfidenceTier.HIGH if close > strong else ConfidenceTier.MEDIUM,
                )
            if _touched(low, strong, self.tolerance) and close > strong:
                return StrategyCandidate(
                    strategy=self.name,
                    direction=Direction.LONG,
                    rationale=(
                        f"Price bounced off EMA {self.strong_period} ({strong:.0f}) with bullish confirmation. "
                        "Strong support level."
                    ),
                    tier=ConfidenceTier.HIGH,
                )

        if close < trend and close < open_ and _touched(high, support, self.tolerance) and close < support:
            return StrategyCandidate(
                strategy=self.name,
                direction=Direction.SHORT,
                rationale=(
                    f"Price rejected from EMA {self.support_period} ({support:.0f}) with bearish close. "
                    f"Downtrend from EMA {self.trend_period}."
                ),
                tier=ConfidenceTier.HIGH if close < strong else ConfidenceTier.MEDIUM,
            )
        return None
