"""Shared fixtures."""

from datetime import datetime, timezone

import pytest
from confluence_bot.core.types import Direction, Signal, StrategyName

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def build_signal(
    strategy=StrategyName.EMA_BOUNCE,
    direction=Direction.LONG,
    entry=100.0,
    detected_at=T0,
    signal_id="sig-1",
    confidence=85,
):
    if direction == Direction.LONG:
        stop, target = entry * 0.96, entry * 1.08
    else:
        stop, target = entry * 1.04, entry * 0.92
    return Signal(
        id=signal_id,
        strategy=strategy,
        direction=direction,
        confidence=confidence,
        entry_price=entry,
        stop_loss=stop,
        take_profit=target,
        risk_reward=2.0,
        rationale="test",
        timeframe="1h",
        detected_at=detected_at,
        aligned_strategies=(strategy,),
    )


@pytest.fixture
def make_signal():
    return build_signal
