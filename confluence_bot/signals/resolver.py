"""
Position resolution: stop-loss, take-profit, and holding-period expiry.

Stop-loss is checked before take-profit: a bar whose range covers both cannot tell
which came first, so the loss is assumed.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from confluence_bot.core.types import Candle, Direction, ExitReason, Signal, SignalStatus
from confluence_bot.utils.timeframes import timeframe_minutes

logger = logging.getLogger("confluence_bot.resolver")


@dataclass(frozen=True)
class ExitDecision:
    reason: ExitReason
    price: float
    pnl_percent: float


@dataclass
class Resolution:
    """A signal that closed on this bar."""
    signal: Signal
    reason: ExitReason

    @property
    def is_expiry(self) -> bool:
        return self.reason == ExitReason.TIMEOUT


def pnl_percent(direction: Direction, entry: float, exit_price: float) -> float:
    """Signed percent move in the position's favor."""
    if direction == Direction.LONG:
        return (exit_price - entry) / entry * 100.0
    return (entry - exit_price) / entry * 100.0


def evaluate_exit(
    direction: Direction,
    entry: float,
    stop_loss: float,
    take_profit: float,
    high: float,
    low: float,
    close: float,
    bars_held: int,
    max_holding_period: int,
) -> Optional[ExitDecision]:
    """Exit for one bar, or None to keep holding."""
    if direction == Direction.LONG:
        stop_hit = low <= stop_loss
        target_hit = high >= take_profit
    else:
        stop_hit = high >= stop_loss
        target_hit = low <= take_profit
    if stop_hit:
        return ExitDecision(ExitReason.STOP_LOSS, stop_loss, pnl_percent(direction, entry, stop_loss))
    if target_hit:
        return ExitDecision(ExitReason.TAKE_PROFIT, take_profit, pnl_percent(direction, entry, take_profit))
    if bars_held >= max_holding_period:
        return ExitDecision(ExitReason.TIMEOUT, close, pnl_percent(direction, entry, close))
    return None


class PositionResolver:
    """Closes active signals against the latest candle."""

    def __init__(self, max_holding_period: int = 36, timeframe: str = "1h"):
        self.max_holding_period = max_holding_period
        self.timeframe = timeframe
        self._bar_ms = timeframe_minutes(timeframe) * 60_000

    def bars_held(self, signal: Signal, candle: Candle) -> int:
        """Whole bars between detection and the close of `candle`."""
        detected_ms = int(signal.detected_at.timestamp() * 1000)
        candle_close_ms = candle.time + self._bar_ms
        return max(0, (candle_close_ms - detected_ms) // self._bar_ms)

    def resolve(self, signal: Signal, candle: Candle, now: Optional[datetime] = None) -> Optional[Resolution]:
        if not signal.is_open:
            return None
        now = now or datetime.now(timezone.utc)
        decision = evaluate_exit(
            signal.direction,
            signal.entry_price,
            signal.stop_loss,
            signal.take_profit,
            candle.high,
            candle.low,
            candle.close,
            self.bars_held(signal, candle),
            self.max_holding_period,
        )
        if decision is None:
            return None
        status = SignalStatus.EXPIRED if decision.reason == ExitReason.TIMEOUT else SignalStatus.TRIGGERED
        closed = signal.closed(status, decision.price, decision.pnl_percent, now)
        logger.info(
            "Signal %s %s at %.2f. P&L: %.2f%%",
            signal.id,
            decision.reason.value,
            decision.price,
            decision.pnl_percent,
        )
        return Resolution(signal=closed, reason=decision.reason)

    def resolve_all(self, signals: Iterable[Signal], candle: Candle, now: Optional[datetime] = None) -> List[Resolution]:
        now = now or datetime.now(timezone.utc)
        resolutions = []
        for signal in signals:
            r = self.resolve(signal, candle, now)
            if r is not None:
                resolutions.append(r)
        return resolutions
