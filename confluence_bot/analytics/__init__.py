"""Analytics: backtest performance metrics and signal statistics."""

from confluence_bot.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    sharpe_ratio,
    max_drawdown,
    win_rate,
    profit_factor,
    expectancy,
)
from confluence_bot.analytics.signal_stats import SignalStats, compute_signal_stats

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "sharpe_ratio",
    "max_drawdown",
    "win_rate",
    "profit_factor",
    "expectancy",
    "SignalStats",
    "compute_signal_stats",
]
