"""
Core data types for candles, strategy candidates, signals, and backtest trades.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class StrategyName(str, Enum):
    EMA_BOUNCE = "ema_bounce"
    MACD_CROSS = "macd_cross"
    RSI_REVERSAL = "rsi_reversal"
    BOLLINGER_BREAKOUT = "bollinger_breakout"


STRATEGY_LABELS = {
    StrategyName.EMA_BOUNCE: "EMA Bounce",
    StrategyName.MACD_CROSS: "MACD Cross",
    StrategyName.RSI_REVERSAL: "RSI Reversal",
    StrategyName.BOLLINGER_BREAKOUT: "BB Mean Reversion",
}


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def score(self) -> int:
        return {"high": 90, "medium": 70, "low": 50}[self.value]


class SignalStatus(str, Enum):
    ACTIVE = "active"
    TRIGGERED = "triggered"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ExitReason(str, Enum):
    TAKE_PROFIT = "take_profit"
    STOP_LOSS = "stop_loss"
    TIMEOUT = "timeout"


class SignalStateError(ValueError):
    """Raised when a closed signal is asked to change state."""


@dataclass(frozen=True)
class Candle:
    """OHLCV candle. time is the open time in epoch milliseconds."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class StrategyCandidate:
    """Directional call from one detector on one bar."""
    strategy: StrategyName
    direction: Direction
    rationale: str
    tier: ConfidenceTier = ConfidenceTier.MEDIUM


@dataclass
class Signal:
    """Emitted trade setup with entry, stop, target and lifecycle state."""
    id: str
    strategy: StrategyName
    direction: Direction
    confidence: int
    entry_price: float
    stop_loss: float
    take_profit: float
    risk_reward: float
    rationale: str
    timeframe: str
    detected_at: datetime
    status: SignalStatus = SignalStatus.ACTIVE
    triggered_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    close_price: Optional[float] = None
    pnl_percent: Optional[float] = None
    aligned_strategies: Tuple[StrategyName, ...] = field(default_factory=tuple)

    @property
    def is_open(self) -> bool:
        return self.status == SignalStatus.ACTIVE

    def closed(
        self,
        status: SignalStatus,
        close_price: float,
        pnl_percent: float,
        closed_at: datetime,
    ) -> "Signal":
        """Return a closed copy. Only active signals may close, and only to triggered/expired."""
        if not self.is_open:
            raise SignalStateError(f"signal {self.id} is already {self.status.value}")
        if status not in (SignalStatus.TRIGGERED, SignalStatus.EXPIRED):
            raise SignalStateError(f"cannot close signal {self.id} as {status.value}")
        return replace(
            self,
            status=status,
            triggered_at=closed_at if status == SignalStatus.TRIGGERED else None,
            closed_at=closed_at,
            close_price=close_price,
            pnl_percent=pnl_percent,
        )


@dataclass
class BacktestTrade:
    """Closed simulated trade."""
    entry_time: datetime
    exit_time: datetime
    entry_price: float
    exit_price: float
    direction: Direction
    strategy: StrategyName
    pnl_percent: float
    pnl_amount: float
    exit_reason: ExitReason
    entry_index: int = 0
    exit_index: int = 0
