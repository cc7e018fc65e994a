"""Backtesting: bar-by-bar replay of detection and exit rules."""

from confluence_bot.backtesting.engine import BacktestRunner, BacktestConfig, BacktestResult

__all__ = ["BacktestRunner", "BacktestConfig", "BacktestResult"]
