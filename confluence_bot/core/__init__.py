"""Core: config, types, logging."""

from confluence_bot.core.config import load_config, Config, ConfigError
from confluence_bot.core.types import (
    Candle,
    Direction,
    StrategyName,
    StrategyCandidate,
    Signal,
    SignalStatus,
    ExitReason,
    BacktestTrade,
)
from confluence_bot.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "ConfigError",
    "Candle",
    "Direction",
    "StrategyName",
    "StrategyCandidate",
    "Signal",
    "SignalStatus",
    "ExitReason",
    "BacktestTrade",
    "setup_logging",
]
