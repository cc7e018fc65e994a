"""Summary statistics over recorded confluence signals."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from confluence_bot.core.types import Direction, Signal, SignalStatus
from confluence_bot.signals.confluence import FULL_CONFIDENCE, STRONG_CONFIDENCE


@dataclass
class SignalStats:
    total: int = 0
    active: int = 0
    triggered: int = 0
    expired: int = 0
    strong_confluence: int = 0
    full_confluence: int = 0
    long_signals: int = 0
    short_signals: int = 0
    total_pnl: float = 0.0
    avg_pnl: float = 0.0
    win_rate: float = 0.0


def compute_signal_stats(signals: Iterable[Signal], min_confidence: int = STRONG_CONFIDENCE) -> SignalStats:
    """Counts by status / confluence level / direction and P&L over closed signals with confidence >= min_confidence."""
    selected = [s for s in signals if s.confidence >= min_confidence]
    closed = [s for s in selected if s.pnl_percent is not None]
    total_pnl = sum(s.pnl_percent for s in closed)
    wins = sum(1 for s in closed if s.pnl_percent > 0)
    return SignalStats(
        total=len(selected),
        active=sum(1 for s in selected if s.status == SignalStatus.ACTIVE),
        triggered=sum(1 for s in selected if s.status == SignalStatus.TRIGGERED),
        expired=sum(1 for s in selected if s.status == SignalStatus.EXPIRED),
        strong_confluence=sum(1 for s in selected if s.confidence == STRONG_CONFIDENCE),
        full_confluence=sum(1 for s in selected if s.confidence >= FULL_CONFIDENCE),
        long_signals=sum(1 for s in selected if s.direction == Direction.LONG),
        short_signals=sum(1 for s in selected if s.direction == Direction.SHORT),
        total_pnl=total_pnl,
        avg_pnl=total_pnl / len(closed) if closed else 0.0,
        win_rate=wins / len(closed) * 100.0 if closed else 0.0,
    )
