"""
Performance metrics over per-trade percent returns: win rate, profit factor,
simplified Sharpe, max drawdown of a balance curve.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

import numpy as np


@dataclass
class PerformanceMetrics:
    """Aggregate performance metrics. Percent fields are in percent units."""
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_pnl_percent: float
    average_pnl_percent: float
    max_drawdown: float
    profit_factor: float
    sharpe_ratio: float


def sharpe_ratio(returns: List[float]) -> float:
    """Mean trade return / population std of trade returns. 0 if std is 0."""
    if not returns:
        return 0.0
    arr = np.array(returns, dtype=float)
    std = arr.std()
    if std <= 1e-12:
        return 0.0
    return float(arr.mean() / std)


def max_drawdown(balances: List[float]) -> float:
    """Largest peak-to-trough decline of a balance curve, in percent (positive)."""
    if not balances:
        return 0.0
    arr = np.array(balances, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (peak - arr) / np.where(peak != 0, peak, 1)
    return float(np.max(dd)) * 100.0


def win_rate(pnls: List[float]) -> float:
    """Percent of trades with positive PnL."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls) * 100.0


def profit_factor(pnls: List[float]) -> float:
    """Gross profit / gross loss. inf if no losses but some profit, 0 if neither."""
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    if losses <= 0:
        return float("inf") if wins > 0 else 0.0
    return wins / losses


def expectancy(pnls: List[float]) -> float:
    """Average PnL per trade."""
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def compute_metrics(pnl_percents: List[float], balances: Optional[List[float]] = None) -> PerformanceMetrics:
    """
    Metrics from per-trade percent returns. balances is the running balance curve
    (starting balance first); if None, one is built from 100 + cumulative percents.
    """
    if balances is None:
        balances = [100.0]
        for p in pnl_percents:
            balances.append(balances[-1] + p)
    wins = [p for p in pnl_percents if p > 0]
    return PerformanceMetrics(
        total_trades=len(pnl_percents),
        winning_trades=len(wins),
        losing_trades=len(pnl_percents) - len(wins),
        win_rate=win_rate(pnl_percents),
        total_pnl_percent=float(sum(pnl_percents)),
        average_pnl_percent=expectancy(pnl_percents),
        max_drawdown=max_drawdown(balances),
        profit_factor=profit_factor(pnl_percents),
        sharpe_ratio=sharpe_ratio(pnl_percents),
    )
