"""Unit tests for signals.confluence."""

from datetime import datetime, timezone

import pytest
from confluence_bot.core.types import ConfidenceTier, Direction, StrategyCandidate, StrategyName
from confluence_bot.risk.manager import RiskManager
from confluence_bot.signals.confluence import ConfluenceAggregator

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _c(strategy, direction, tier=ConfidenceTier.MEDIUM):
    return StrategyCandidate(strategy, direction, f"{strategy.value} fired.", tier)


def _aggregator(min_confluence=3, min_risk_reward=1.5):
    return ConfluenceAggregator(RiskManager(4.0, 8.0, min_risk_reward), min_confluence=min_confluence)


def test_three_aligned_is_strong_confluence():
    candidates = [
        _c(StrategyName.EMA_BOUNCE, Direction.LONG),
        _c(StrategyName.MACD_CROSS, Direction.LONG),
        _c(StrategyName.RSI_REVERSAL, Direction.LONG),
        _c(StrategyName.BOLLINGER_BREAKOUT, Direction.SHORT),
    ]
    signals = _aggregator().aggregate(candidates, 100.0, "1h", NOW)
    assert len(signals) == 1
    s = signals[0]
    assert s.direction == Direction.LONG
    assert s.confidence == 85
    assert s.strategy == StrategyName.EMA_BOUNCE
    assert s.entry_price == 100.0
    assert s.stop_loss == pytest.approx(96.0)
    assert s.take_profit == pytest.approx(108.0)
    assert s.risk_reward == pytest.approx(2.0)
    assert s.timeframe == "1h"
    assert s.detected_at == NOW
    assert s.aligned_strategies == (StrategyName.EMA_BOUNCE, StrategyName.MACD_CROSS, StrategyName.RSI_REVERSAL)
    lines = s.rationale.split("\n")
    assert lines[0] == "STRONG CONFLUENCE (3/4 strategies aligned LONG)"
    assert lines[1] == "- EMA Bounce: ema_bounce fired."
    assert len(lines) == 4


def test_all_four_aligned_is_full_confluence():
    candidates = [_c(s, Direction.SHORT) for s in StrategyName]
    s = _aggregator().aggregate(candidates, 100.0, "1h", NOW)[0]
    assert s.confidence == 95
    assert s.rationale.startswith("FULL CONFLUENCE (4/4 strategies aligned SHORT)")
    assert s.stop_loss == pytest.approx(104.0)
    assert s.take_profit == pytest.approx(92.0)


def test_primary_strategy_is_first_candidate():
    candidates = [
        _c(StrategyName.MACD_CROSS, Direction.LONG),
        _c(StrategyName.RSI_REVERSAL, Direction.LONG),
        _c(StrategyName.BOLLINGER_BREAKOUT, Direction.LONG),
    ]
    assert _aggregator().aggregate(candidates, 100.0, "1h", NOW)[0].strategy == StrategyName.MACD_CROSS


def test_below_threshold_emits_nothing():
    candidates = [_c(StrategyName.EMA_BOUNCE, Direction.LONG), _c(StrategyName.MACD_CROSS, Direction.LONG)]
    assert _aggregator().aggregate(candidates, 100.0, "1h", NOW) == []
    assert _aggregator().aggregate([], 100.0, "1h", NOW) == []


def test_both_directions_can_emit():
    candidates = [
        _c(StrategyName.EMA_BOUNCE, Direction.LONG),
        _c(StrategyName.MACD_CROSS, Direction.LONG),
        _c(StrategyName.RSI_REVERSAL, Direction.SHORT),
        _c(StrategyName.BOLLINGER_BREAKOUT, Direction.SHORT),
    ]
    signals = _aggregator(min_confluence=2).aggregate(candidates, 100.0, "1h", NOW)
    assert [s.direction for s in signals] == [Direction.LONG, Direction.SHORT]
    assert signals[0].id != signals[1].id


def test_single_strategy_mode_uses_tier_confidence():
    candidates = [
        _c(StrategyName.EMA_BOUNCE, Direction.LONG, ConfidenceTier.HIGH),
        _c(StrategyName.RSI_REVERSAL, Direction.SHORT, ConfidenceTier.LOW),
    ]
    signals = _aggregator(min_confluence=1).aggregate(candidates, 100.0, "1h", NOW)
    assert [s.confidence for s in signals] == [90, 50]
    assert signals[0].rationale == "ema_bounce fired."
    assert signals[1].aligned_strategies == (StrategyName.RSI_REVERSAL,)


def test_levels_below_min_risk_reward_are_rejected():
    candidates = [_c(s, Direction.LONG) for s in StrategyName]
    assert _aggregator(min_risk_reward=3.0).aggregate(candidates, 100.0, "1h", NOW) == []


def test_min_confluence_out_of_range():
    with pytest.raises(ValueError):
        _aggregator(min_confluence=0)
    with pytest.raises(ValueError):
        _aggregator(min_confluence=5)
