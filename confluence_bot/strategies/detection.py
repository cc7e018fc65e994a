"""
Per-bar detection: volume gate, then every enabled detector in registration order.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional

import pandas as pd

from confluence_bot.core.config import StrategySettings
from confluence_bot.core.types import StrategyCandidate, StrategyName
from confluence_bot.indicators.volume import volume_confirmation
from confluence_bot.strategies.base import BaseDetector
from confluence_bot.strategies.bollinger_reversion import BollingerReversionDetector
from confluence_bot.strategies.ema_bounce import EmaBounceDetector
from confluence_bot.strategies.macd_cross import MacdCrossDetector
from confluence_bot.strategies.rsi_reversal import RsiReversalDetector

logger = logging.getLogger("confluence_bot.strategies")

# Registration order decides the primary strategy of a confluence signal.
STRATEGY_ORDER = (
    StrategyName.EMA_BOUNCE,
    StrategyName.MACD_CROSS,
    StrategyName.RSI_REVERSAL,
    StrategyName.BOLLINGER_BREAKOUT,
)


@dataclass
class DetectionResult:
    """Candidates for one bar plus the volume gate outcome."""
    candidates: List[StrategyCandidate] = field(default_factory=list)
    volume_ratio: Optional[float] = None
    volume_confirmed: bool = True


def build_detectors(
    settings: StrategySettings,
    enabled: Optional[Iterable[StrategyName]] = None,
    rsi_oversold: Optional[float] = None,
    rsi_overbought: Optional[float] = None,
    volume_period: int = 20,
) -> List[BaseDetector]:
    """Instantiate enabled detectors in registration order. RSI thresholds may be overridden."""
    enabled = set(settings.enabled_strategies if enabled is None else enabled)
    factories = {
        StrategyName.EMA_BOUNCE: lambda: EmaBounceDetector(
            support_period=settings.ema_support_period,
            strong_period=settings.ema_strong_period,
            trend_period=settings.ema_trend_period,
            tolerance=settings.ema_bounce_tolerance,
        ),
        StrategyName.MACD_CROSS: lambda: MacdCrossDetector(
            trend_period=settings.ema_trend_period,
            trend_filter=settings.macd_trend_filter,
        ),
        StrategyName.RSI_REVERSAL: lambda: RsiReversalDetector(
            oversold=settings.rsi_oversold if rsi_oversold is None else rsi_oversold,
            overbought=settings.rsi_overbought if rsi_overbought is None else rsi_overbought,
        ),
        StrategyName.BOLLINGER_BREAKOUT: lambda: BollingerReversionDetector(volume_period=volume_period),
    }
    return [factories[name]() for name in STRATEGY_ORDER if name in enabled]


def detect_candidates(
    df: pd.DataFrame,
    index: int,
    detectors: List[BaseDetector],
    volume_period: int = 20,
    volume_multiplier: Optional[float] = 1.5,
) -> DetectionResult:
    """
    Run detectors on bar `index` of an indicator frame.
    If volume_multiplier is set and the bar's volume is not confirmed, no detector runs.
    """
    if index < 1 or index >= len(df):
        return DetectionResult(volume_confirmed=False)
    ratio = None
    if volume_multiplier is not None:
        check = volume_confirmation(df, index, volume_period, volume_multiplier)
        ratio = check.ratio
        if not check.confirmed:
            logger.debug("Volume too low (%.2fx avg), need %.2fx", check.ratio, volume_multiplier)
            return DetectionResult(volume_ratio=ratio, volume_confirmed=False)

    candidates = []
    for detector in detectors:
        candidate = detector.detect(df, index)
        if candidate is None:
            continue
        if ratio is not None:
            candidate = replace(candidate, rationale=f"{candidate.rationale} Vol: {ratio:.1f}x avg.")
        candidates.append(candidate)
    if candidates:
        logger.debug(
            "Bar %d candidates: %s",
            index,
            ", ".join(f"{c.strategy.value}({c.direction.value})" for c in candidates),
        )
    return DetectionResult(candidates=candidates, volume_ratio=ratio, volume_confirmed=True)
