"""Notification contract and the plain payloads handed to notifiers."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from confluence_bot.core.types import STRATEGY_LABELS, Signal

if TYPE_CHECKING:
    from confluence_bot.signals.resolver import Resolution


class Notifier(ABC):
    """Delivers signal and exit messages. Returns False (never raises) when delivery fails."""

    @abstractmethod
    def notify_signal(self, signal: Signal) -> bool:
        pass

    @abstractmethod
    def notify_exit(self, resolution: "Resolution") -> bool:
        pass


def signal_payload(signal: Signal) -> dict:
    """New-signal payload: labels, direction, confidence, levels, risk/reward, rationale, time."""
    n = len(signal.aligned_strategies)
    if n > 1:
        headline = f"{'FULL' if signal.confidence >= 95 else 'STRONG'} CONFLUENCE ({n}/{len(STRATEGY_LABELS)})"
    else:
        headline = f"{STRATEGY_LABELS[signal.strategy]} signal"
    return {
        "id": signal.id,
        "headline": headline,
        "strategy": signal.strategy.value,
        "strategy_label": STRATEGY_LABELS[signal.strategy],
        "aligned_strategies": [STRATEGY_LABELS[s] for s in signal.aligned_strategies],
        "direction": signal.direction.value,
        "confidence": signal.confidence,
        "entry_price": signal.entry_price,
        "stop_loss": signal.stop_loss,
        "take_profit": signal.take_profit,
        "risk_reward": signal.risk_reward,
        "rationale": signal.rationale,
        "timeframe": signal.timeframe,
        "detected_at": signal.detected_at.isoformat(),
    }


def exit_payload(resolution: "Resolution") -> dict:
    """Exit payload: hit type, direction, entry/exit price, P&L percent."""
    s = resolution.signal
    return {
        "id": s.id,
        "hit_type": resolution.reason.value,
        "strategy": s.strategy.value,
        "strategy_label": STRATEGY_LABELS[s.strategy],
        "direction": s.direction.value,
        "entry_price": s.entry_price,
        "exit_price": s.close_price,
        "pnl_percent": s.pnl_percent,
        "status": s.status.value,
        "closed_at": s.closed_at.isoformat() if s.closed_at else None,
    }
