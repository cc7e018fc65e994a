"""Unit tests for backtesting.engine."""

import numpy as np
import pytest
from confluence_bot.backtesting.engine import BacktestConfig, BacktestRunner
from confluence_bot.core.config import BacktestSettings, StrategySettings
from confluence_bot.core.types import Candle, Direction, ExitReason, StrategyCandidate, StrategyName
from confluence_bot.strategies.base import BaseDetector

HOUR_MS = 3_600_000


class _FiresAt(BaseDetector):
    def __init__(self, indices, name=StrategyName.RSI_REVERSAL, direction=Direction.LONG):
        self.indices = set(indices)
        self.name = name
        self.direction = direction

    def detect(self, df, index):
        if index in self.indices:
            return StrategyCandidate(self.name, self.direction, "fires.")
        return None


def _flat(n=20, overrides=None):
    """Flat candles at 100 with a 1-point range; overrides maps index -> (high, low)."""
    overrides = overrides or {}
    candles = []
    for i in range(n):
        high, low = overrides.get(i, (101.0, 99.0))
        candles.append(Candle(i * HOUR_MS, 100.0, high, low, 100.0, 10.0))
    return candles


def _config(**kwargs):
    params = dict(stop_loss_percent=2.0, take_profit_percent=4.0, max_holding_period=5, warmup_bars=2)
    params.update(kwargs)
    return BacktestConfig(**params)


def test_take_profit_trade():
    runner = BacktestRunner(_config(), detectors=[_FiresAt({3})])
    result = runner.run(_flat(overrides={5: (105.0, 99.5)}))
    assert result.total_trades == 1
    t = result.trades[0]
    assert t.entry_index == 3
    assert t.exit_index == 5
    assert t.exit_reason == ExitReason.TAKE_PROFIT
    assert t.entry_price == 100.0
    assert t.exit_price == pytest.approx(104.0)
    assert t.pnl_percent == pytest.approx(4.0)
    assert t.pnl_amount == pytest.approx(400.0)
    assert t.strategy == StrategyName.RSI_REVERSAL
    assert result.final_balance == pytest.approx(10400.0)
    assert result.equity_curve == pytest.approx([10000.0, 10400.0])
    m = result.metrics
    assert m.win_rate == 100.0
    assert m.profit_factor == float("inf")


def test_stop_loss_wins_when_bar_spans_both_levels():
    runner = BacktestRunner(_config(), detectors=[_FiresAt({3})])
    t = runner.run(_flat(overrides={4: (105.0, 97.0)})).trades[0]
    assert t.exit_reason == ExitReason.STOP_LOSS
    assert t.pnl_percent == pytest.approx(-2.0)


def test_short_trade():
    runner = BacktestRunner(_config(), detectors=[_FiresAt({3}, direction=Direction.SHORT)])
    t = runner.run(_flat(overrides={6: (100.5, 95.0)})).trades[0]
    assert t.direction == Direction.SHORT
    assert t.exit_reason == ExitReason.TAKE_PROFIT
    assert t.exit_price == pytest.approx(96.0)
    assert t.pnl_percent == pytest.approx(4.0)


def test_timeout_is_breakeven_loss():
    runner = BacktestRunner(_config(), detectors=[_FiresAt({3})])
    result = runner.run(_flat())
    t = result.trades[0]
    assert t.exit_reason == ExitReason.TIMEOUT
    assert t.exit_index == 8
    assert t.pnl_percent == pytest.approx(0.0)
    assert result.metrics.losing_trades == 1
    assert result.metrics.profit_factor == 0.0


def test_positions_never_overlap():
    runner = BacktestRunner(_config(), detectors=[_FiresAt({3, 4, 9})])
    trades = runner.run(_flat()).trades
    assert [t.entry_index for t in trades] == [3, 9]
    assert trades[1].entry_index > trades[0].exit_index


def test_no_entries_inside_final_holding_window():
    runner = BacktestRunner(_config(), detectors=[_FiresAt({1, 15, 16})])
    # warmup skips 1; 15 >= 20 - 5
    assert runner.run(_flat()).trades == []


def test_confluence_mode_names_first_strategy():
    detectors = [
        _FiresAt({3}, name=StrategyName.MACD_CROSS),
        _FiresAt({3}, name=StrategyName.RSI_REVERSAL),
    ]
    runner = BacktestRunner(_config(use_confluence=True, min_confluence=2), detectors=detectors)
    trades = runner.run(_flat()).trades
    assert len(trades) == 1
    assert trades[0].strategy == StrategyName.MACD_CROSS


def test_confluence_mode_skips_bar_with_both_directions():
    detectors = [
        _FiresAt({3}, name=StrategyName.EMA_BOUNCE),
        _FiresAt({3}, name=StrategyName.MACD_CROSS),
        _FiresAt({3}, name=StrategyName.RSI_REVERSAL, direction=Direction.SHORT),
        _FiresAt({3}, name=StrategyName.BOLLINGER_BREAKOUT, direction=Direction.SHORT),
    ]
    runner = BacktestRunner(_config(use_confluence=True, min_confluence=2), detectors=detectors)
    assert runner.run(_flat()).trades == []


def test_volume_gate_when_enabled():
    runner = BacktestRunner(_config(volume_multiplier=1.5), detectors=[_FiresAt({3})])
    assert runner.run(_flat()).trades == []


def test_from_settings():
    strategies = StrategySettings(enabled={s: s != StrategyName.EMA_BOUNCE for s in StrategyName})
    config = BacktestConfig.from_settings(BacktestSettings(), strategies, min_confluence=2)
    assert config.stop_loss_percent == 2.0
    assert config.take_profit_percent == 4.0
    assert config.max_holding_period == 24
    assert config.min_confluence == 2
    assert StrategyName.EMA_BOUNCE not in config.enabled_strategies
    runner = BacktestRunner(config)
    assert [d.name for d in runner.detectors] == [
        StrategyName.MACD_CROSS, StrategyName.RSI_REVERSAL, StrategyName.BOLLINGER_BREAKOUT,
    ]
    assert runner.detectors[1].oversold == 30.0


def test_real_detectors_respect_invariants():
    rng = np.random.default_rng(3)
    closes = 100 * np.exp(np.cumsum(rng.normal(0, 0.01, 500)))
    candles = [
        Candle(i * HOUR_MS, float(c), float(c) * 1.006, float(c) * 0.994, float(c), float(rng.uniform(5, 15)))
        for i, c in enumerate(closes)
    ]
    config = BacktestConfig()
    result = BacktestRunner(config).run(candles)
    last_exit = -1
    for t in result.trades:
        assert t.entry_index >= config.warmup_bars
        assert t.entry_index > last_exit
        assert 0 < t.exit_index - t.entry_index <= config.max_holding_period
        last_exit = t.exit_index
    assert len(result.equity_curve) == result.total_trades + 1
    assert result.final_balance == pytest.approx(
        config.initial_balance + sum(t.pnl_amount for t in result.trades)
    )


def test_single_strategy_confluence_mode_takes_first_same_direction_candidate():
    detectors = [
        _FiresAt({60}, name=StrategyName.EMA_BOUNCE),
        _FiresAt({60}, name=StrategyName.MACD_CROSS),
    ]
    runner = BacktestRunner(_config(use_confluence=True, min_confluence=1), detectors=detectors)
    trades = runner.run(_flat(120)).trades
    assert len(trades) == 1
    assert trades[0].entry_index == 60
    assert trades[0].strategy == StrategyName.EMA_BOUNCE
    assert trades[0].direction == Direction.LONG
