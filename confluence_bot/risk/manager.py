"""
Risk manager: stop-loss / take-profit levels from fixed percent offsets and
risk-reward validation. Levels always straddle entry on the direction-correct side.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Tuple

from confluence_bot.core.types import Direction

logger = logging.getLogger("confluence_bot.risk")


@dataclass
class RiskResult:
    """Result of risk check: allowed or rejected + reason."""
    allowed: bool
    reason: str = ""


class RiskManager:
    """Percent-based SL/TP placement with a minimum reward/risk requirement."""

    def __init__(
        self,
        stop_loss_percent: float = 4.0,
        take_profit_percent: float = 8.0,
        min_risk_reward: float = 1.0,
    ):
        self.stop_loss_percent = stop_loss_percent
        self.take_profit_percent = take_profit_percent
        self.min_risk_reward = min_risk_reward

    @property
    def planned_risk_reward(self) -> float:
        """Reward/risk implied by the configured percents."""
        return self.take_profit_percent / self.stop_loss_percent

    def levels(self, entry_price: float, direction: Direction) -> Tuple[float, float]:
        """(stop_loss, take_profit) for an entry."""
        sl = self.stop_loss_percent / 100.0
        tp = self.take_profit_percent / 100.0
        if direction == Direction.LONG:
            return entry_price * (1 - sl), entry_price * (1 + tp)
        return entry_price * (1 + sl), entry_price * (1 - tp)

    @staticmethod
    def risk_reward_ratio(entry: float, stop: float, tp: float) -> float:
        """Risk-reward ratio (reward/risk)."""
        risk = abs(entry - stop)
        if risk <= 0:
            return 0.0
        return abs(tp - entry) / risk

    def validate_levels(self, entry: float, stop: float, tp: float, direction: Direction) -> RiskResult:
        """Check side-correctness and minimum reward/risk."""
        if direction == Direction.LONG and not stop < entry < tp:
            return RiskResult(allowed=False, reason="long levels must satisfy stop < entry < target")
        if direction == Direction.SHORT and not tp < entry < stop:
            return RiskResult(allowed=False, reason="short levels must satisfy target < entry < stop")
        rr = self.risk_reward_ratio(entry, stop, tp)
        # small epsilon: percent-derived levels reproduce the ratio only up to float rounding
        if rr + 1e-9 < self.min_risk_reward:
            return RiskResult(allowed=False, reason=f"risk_reward {rr:.2f} < {self.min_risk_reward}")
        return RiskResult(allowed=True)
