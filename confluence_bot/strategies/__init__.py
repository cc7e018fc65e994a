"""Strategies: detector interface, the four detectors, and per-bar detection."""

from confluence_bot.strategies.base import BaseDetector
from confluence_bot.strategies.ema_bounce import EmaBounceDetector
from confluence_bot.strategies.macd_cross import MacdCrossDetector
from confluence_bot.strategies.rsi_reversal import RsiReversalDetector
from confluence_bot.strategies.bollinger_reversion import BollingerReversionDetector
from confluence_bot.strategies.detection import (
    DetectionResult,
    STRATEGY_ORDER,
    build_detectors,
    detect_candidates,
)

__all__ = [
    "BaseDetector",
    "EmaBounceDetector",
    "MacdCrossDetector",
    "RsiReversalDetector",
    "BollingerReversionDetector",
    "DetectionResult",
    "STRATEGY_ORDER",
    "build_detectors",
    "detect_candidates",
]
