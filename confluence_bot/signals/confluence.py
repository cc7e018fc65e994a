"""
Confluence aggregation: turn per-bar strategy candidates into emitted signals.
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime
from typing import List, Sequence

from confluence_bot.core.types import (
    STRATEGY_LABELS,
    Direction,
    Signal,
    StrategyCandidate,
    StrategyName,
)
from confluence_bot.risk.manager import RiskManager

logger = logging.getLogger("confluence_bot.signals.confluence")

STRONG_CONFIDENCE = 85
FULL_CONFIDENCE = 95


def new_signal_id() -> str:
    return uuid.uuid4().hex


class ConfluenceAggregator:
    """
    Groups candidates by direction. Each direction backed by at least `min_confluence`
    strategies yields one signal: confidence 95 when every strategy agrees, else 85.
    The first candidate (registration order) names the signal's strategy.

    With min_confluence == 1 every candidate becomes its own signal and confidence
    comes from the candidate's tier (90 / 70 / 50).
    """

    def __init__(
        self,
        risk_manager: RiskManager,
        min_confluence: int = 3,
        total_strategies: int = len(StrategyName),
    ):
        if not 1 <= min_confluence <= total_strategies:
            raise ValueError(f"min_confluence must be between 1 and {total_strategies}")
        self.risk_manager = risk_manager
        self.min_confluence = min_confluence
        self.total_strategies = total_strategies

    def aggregate(
        self,
        candidates: Sequence[StrategyCandidate],
        close: float,
        timeframe: str,
        detected_at: datetime,
    ) -> List[Signal]:
        if self.min_confluence == 1:
            return self._single_strategy(candidates, close, timeframe, detected_at)

        signals = []
        for direction in (Direction.LONG, Direction.SHORT):
            group = [c for c in candidates if c.direction == direction]
            if len(group) < self.min_confluence:
                continue
            full = len(group) >= self.total_strategies
            level = "FULL" if full else "STRONG"
            header = (
                f"{level} CONFLUENCE ({len(group)}/{self.total_strategies} strategies aligned "
                f"{direction.value.upper()})"
            )
            reasons = "\n".join(f"- {STRATEGY_LABELS[c.strategy]}: {c.rationale}" for c in group)
            signal = self._build(
                group[0].strategy,
                direction,
                FULL_CONFIDENCE if full else STRONG_CONFIDENCE,
                close,
                f"{header}\n{reasons}",
                timeframe,
                detected_at,
                tuple(c.strategy for c in group),
            )
            if signal is not None:
                logger.info(
                    "%s confluence: %d strategies aligned (%s)",
                    direction.value.upper(),
                    len(group),
                    ", ".join(STRATEGY_LABELS[c.strategy] for c in group),
                )
                signals.append(signal)
        if not signals:
            logger.debug("No confluence: %d candidate(s), need %d in one direction", len(candidates), self.min_confluence)
        return signals

    def _single_strategy(
        self,
        candidates: Sequence[StrategyCandidate],
        close: float,
        timeframe: str,
        detected_at: datetime,
    ) -> List[Signal]:
        signals = []
        for c in candidates:
            signal = self._build(
                c.strategy, c.direction, c.tier.score, close, c.rationale, timeframe, detected_at, (c.strategy,)
            )
            if signal is not None:
                signals.append(signal)
        return signals

    def _build(
        self,
        strategy: StrategyName,
        direction: Direction,
        confidence: int,
        close: float,
        rationale: str,
        timeframe: str,
        detected_at: datetime,
        aligned: tuple,
    ):
        stop, target = self.risk_manager.levels(close, direction)
        check = self.risk_manager.validate_levels(close, stop, target, direction)
        if not check.allowed:
            logger.warning("Signal %s %s rejected: %s", strategy.value, direction.value, check.reason)
            return None
        return Signal(
            id=new_signal_id(),
            strategy=strategy,
            direction=direction,
            confidence=confidence,
            entry_price=close,
            stop_loss=stop,
            take_profit=target,
            risk_reward=self.risk_manager.planned_risk_reward,
            rationale=rationale,
            timeframe=timeframe,
            detected_at=detected_at,
            aligned_strategies=aligned,
        )
