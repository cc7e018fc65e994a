"""
Backtest runner: replays detection and exit rules over a candle history.
One position at a time; the scan resumes after the bar where a trade closed.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Optional, Sequence

import pandas as pd

from confluence_bot.analytics.metrics import PerformanceMetrics, compute_metrics
from confluence_bot.core.config import BacktestSettings, IndicatorSettings, StrategySettings
from confluence_bot.core.types import BacktestTrade, Candle, Direction, StrategyName
from confluence_bot.data.candles import candles_to_frame
from confluence_bot.indicators.engine import compute_indicators
from confluence_bot.risk.manager import RiskManager
from confluence_bot.signals.confluence import ConfluenceAggregator
from confluence_bot.signals.resolver import evaluate_exit
from confluence_bot.strategies.base import BaseDetector
from confluence_bot.strategies.detection import build_detectors, detect_candidates
from confluence_bot.utils.timeframes import ms_to_datetime

logger = logging.getLogger("confluence_bot.backtest")


@dataclass(frozen=True)
class BacktestConfig:
    """Parameters for one run. stop/take-profit are percents (2.0 = 2%)."""
    initial_balance: float = 10000.0
    stop_loss_percent: float = 2.0
    take_profit_percent: float = 4.0
    enabled_strategies: FrozenSet[StrategyName] = frozenset(StrategyName)
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    max_holding_period: int = 24
    warmup_bars: int = 50
    use_confluence: bool = False
    min_confluence: int = 3
    volume_multiplier: Optional[float] = None
    volume_period: int = 20

    @classmethod
    def from_settings(cls, settings: BacktestSettings, strategies: StrategySettings, min_confluence: int = 3) -> "BacktestConfig":
        return cls(
            initial_balance=settings.initial_balance,
            stop_loss_percent=settings.stop_loss_percent,
            take_profit_percent=settings.take_profit_percent,
            enabled_strategies=strategies.enabled_strategies,
            rsi_oversold=settings.rsi_oversold,
            rsi_overbought=settings.rsi_overbought,
            max_holding_period=settings.max_holding_period,
            warmup_bars=settings.warmup_bars,
            use_confluence=settings.use_confluence,
            min_confluence=min_confluence,
        )


@dataclass
class BacktestResult:
    """Backtest output: trade ledger and summary statistics."""
    trades: List[BacktestTrade] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)
    metrics: Optional[PerformanceMetrics] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    initial_balance: float = 0.0
    final_balance: float = 0.0

    @property
    def total_trades(self) -> int:
        return len(self.trades)


class BacktestRunner:
    """
    Cursor starts at warmup_bars and stops max_holding_period bars before the end.
    A trade enters at the signal bar's close and is walked forward bar by bar with the
    same stop-loss / take-profit / timeout rule used for live signals.
    """

    def __init__(
        self,
        config: BacktestConfig = None,
        indicator_settings: IndicatorSettings = None,
        strategy_settings: StrategySettings = None,
        detectors: Optional[List[BaseDetector]] = None,
    ):
        self.config = config or BacktestConfig()
        self.indicator_settings = indicator_settings or IndicatorSettings()
        strategy_settings = strategy_settings or StrategySettings()
        self.detectors = detectors if detectors is not None else build_detectors(
            strategy_settings,
            enabled=self.config.enabled_strategies,
            rsi_oversold=self.config.rsi_oversold,
            rsi_overbought=self.config.rsi_overbought,
            volume_period=self.config.volume_period,
        )
        self.risk_manager = RiskManager(
            self.config.stop_loss_percent,
            self.config.take_profit_percent,
            min_risk_reward=0.0,
        )
        self.aggregator = ConfluenceAggregator(self.risk_manager, min_confluence=self.config.min_confluence)

    def _entry_signal(self, df: pd.DataFrame, index: int):
        """(strategy, direction) to enter on bar `index`, or None."""
        detection = detect_candidates(
            df, index, self.detectors, self.config.volume_period, self.config.volume_multiplier
        )
        if not detection.candidates:
            return None
        if not self.config.use_confluence:
            first = detection.candidates[0]
            return first.strategy, first.direction
        signals = self.aggregator.aggregate(
            detection.candidates, float(df["close"].iloc[index]), "", ms_to_datetime(int(df["time"].iloc[index]))
        )
        if not signals:
            return None
        if len({s.direction for s in signals}) > 1:
            logger.debug("Bar %d: both directions reached confluence, skipping", index)
            return None
        return signals[0].strategy, signals[0].direction

    def _simulate(self, df: pd.DataFrame, entry_index: int, strategy: StrategyName, direction: Direction) -> Optional[BacktestTrade]:
        entry = float(df["close"].iloc[entry_index])
        stop, target = self.risk_manager.levels(entry, direction)
        highs = df["high"].to_numpy(dtype=float)
        lows = df["low"].to_numpy(dtype=float)
        closes = df["close"].to_numpy(dtype=float)
        times = df["time"].to_numpy()
        for i in range(entry_index + 1, len(df)):
            decision = evaluate_exit(
                direction, entry, stop, target,
                highs[i], lows[i], closes[i],
                i - entry_index, self.config.max_holding_period,
            )
            if decision is None:
                continue
            return BacktestTrade(
                entry_time=ms_to_datetime(int(times[entry_index])),
                exit_time=ms_to_datetime(int(times[i])),
                entry_price=entry,
                exit_price=decision.price,
                direction=direction,
                strategy=strategy,
                pnl_percent=decision.pnl_percent,
                pnl_amount=self.config.initial_balance * decision.pnl_percent / 100.0,
                exit_reason=decision.reason,
                entry_index=entry_index,
                exit_index=i,
            )
        return None

    def run(self, candles: Sequence[Candle]) -> BacktestResult:
        df = compute_indicators(candles_to_frame(candles), self.indicator_settings)
        balance = self.config.initial_balance
        equity_curve = [balance]
        trades: List[BacktestTrade] = []

        cursor = self.config.warmup_bars
        while cursor < len(df) - self.config.max_holding_period:
            entry = self._entry_signal(df, cursor)
            if entry is not None:
                trade = self._simulate(df, cursor, *entry)
                if trade is not None:
                    trades.append(trade)
                    balance += trade.pnl_amount
                    equity_curve.append(balance)
                    logger.debug(
                        "%s %s %d->%d %s %.2f%%",
                        trade.strategy.value, trade.direction.value, trade.entry_index,
                        trade.exit_index, trade.exit_reason.value, trade.pnl_percent,
                    )
                    cursor = trade.exit_index
            cursor += 1

        metrics = compute_metrics([t.pnl_percent for t in trades], equity_curve)
        logger.info(
            "Backtest done: %d trades, win rate %.1f%%, total %.2f%%",
            metrics.total_trades, metrics.win_rate, metrics.total_pnl_percent,
        )
        return BacktestResult(
            trades=trades,
            equity_curve=equity_curve,
            metrics=metrics,
            start_date=ms_to_datetime(int(df["time"].iloc[0])) if len(df) else None,
            end_date=ms_to_datetime(int(df["time"].iloc[-1])) if len(df) else None,
            initial_balance=self.config.initial_balance,
            final_balance=balance,
        )
