"""
Load configuration from config.yaml and .env. Secrets only from env.

Every section is a frozen dataclass. A section present in the YAML must list all of
its keys; unknown keys anywhere are rejected. Omitted sections use the defaults below.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from confluence_bot.core.types import StrategyName


class ConfigError(ValueError):
    """Invalid or ill-posed configuration."""


@dataclass(frozen=True)
class MarketSettings:
    symbol: str = "BTCUSDT"
    timeframe: str = "1h"
    lookback: int = 300


@dataclass(frozen=True)
class IndicatorSettings:
    ema_periods: Tuple[int, ...] = (8, 13, 21, 50, 200)
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    bollinger_period: int = 20
    bollinger_std_dev: float = 2.0


@dataclass(frozen=True)
class StrategySettings:
    enabled: Dict[StrategyName, bool] = field(default_factory=lambda: {s: True for s in StrategyName})
    ema_support_period: int = 21
    ema_strong_period: int = 50
    ema_trend_period: int = 200
    ema_bounce_tolerance: float = 0.015
    macd_trend_filter: bool = True
    rsi_oversold: float = 25.0
    rsi_overbought: float = 75.0

    @property
    def enabled_strategies(self) -> frozenset:
        return frozenset(s for s, on in self.enabled.items() if on)


@dataclass(frozen=True)
class RiskSettings:
    stop_loss_percent: float = 4.0
    take_profit_percent: float = 8.0
    min_risk_reward: float = 1.5


@dataclass(frozen=True)
class ScannerSettings:
    min_confluence: int = 3
    volume_period: int = 20
    volume_multiplier: float = 1.5
    duplicate_window_minutes: int = 60
    duplicate_tolerance: float = 0.01
    max_holding_period: int = 36
    signal_store_path: Path = Path("data/signals.json")


@dataclass(frozen=True)
class BacktestSettings:
    initial_balance: float = 10000.0
    stop_loss_percent: float = 2.0
    take_profit_percent: float = 4.0
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    max_holding_period: int = 24
    warmup_bars: int = 50
    use_confluence: bool = False


@dataclass(frozen=True)
class TelegramSettings:
    bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    log_dir: Path = Path("logs")
    log_file: str = "confluence_bot.log"


@dataclass(frozen=True)
class Config:
    """Unified configuration. Immutable after load."""
    market: MarketSettings = field(default_factory=MarketSettings)
    indicators: IndicatorSettings = field(default_factory=IndicatorSettings)
    strategies: StrategySettings = field(default_factory=StrategySettings)
    risk: RiskSettings = field(default_factory=RiskSettings)
    scanner: ScannerSettings = field(default_factory=ScannerSettings)
    backtest: BacktestSettings = field(default_factory=BacktestSettings)
    telegram: TelegramSettings = field(default_factory=TelegramSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    binance_api_key: str = ""
    binance_api_secret: str = ""


_SECTIONS = {
    "market": MarketSettings,
    "indicators": IndicatorSettings,
    "strategies": StrategySettings,
    "risk": RiskSettings,
    "scanner": ScannerSettings,
    "backtest": BacktestSettings,
    "telegram": TelegramSettings,
    "logging": LoggingSettings,
}


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def _parse_enabled(raw: Any) -> Dict[StrategyName, bool]:
    if not isinstance(raw, dict):
        raise ConfigError("strategies.enabled must be a mapping of strategy -> bool")
    known = {s.value for s in StrategyName}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"strategies.enabled: unknown strategies {sorted(unknown)}")
    missing = known - set(raw)
    if missing:
        raise ConfigError(f"strategies.enabled: missing strategies {sorted(missing)}")
    for k, v in raw.items():
        if not isinstance(v, bool):
            raise ConfigError(f"strategies.enabled.{k} must be true or false, got {v!r}")
    return {StrategyName(k): v for k, v in raw.items()}


def _coerce(section: str, key: str, value: Any, default: Any) -> Any:
    """Check a YAML scalar against the type of the field's default."""
    where = f"{section}.{key}"
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ConfigError(f"{where} must be true or false, got {value!r}")
        return value
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{where} must be an integer, got {value!r}")
        return value
    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{where} must be a number, got {value!r}")
        return float(value)
    if isinstance(default, (str, Path)):
        # chat ids are commonly written unquoted
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ConfigError(f"{where} must be a string, got {value!r}")
        return type(default)(str(value))
    if isinstance(default, tuple):
        if not isinstance(value, list) or any(isinstance(v, bool) or not isinstance(v, int) for v in value):
            raise ConfigError(f"{where} must be a list of integers, got {value!r}")
        return tuple(value)
    return value


def _build_section(name: str, raw: Any):
    cls = _SECTIONS[name]
    if not isinstance(raw, dict):
        raise ConfigError(f"section '{name}' must be a mapping")
    names = {f.name for f in fields(cls)}
    unknown = set(raw) - names
    if unknown:
        raise ConfigError(f"section '{name}': unknown keys {sorted(unknown)}")
    missing = names - set(raw)
    if missing:
        raise ConfigError(f"section '{name}': missing keys {sorted(missing)}")
    defaults = cls()
    values = {key: _coerce(name, key, value, getattr(defaults, key)) for key, value in raw.items()}
    if name == "strategies":
        values["enabled"] = _parse_enabled(values["enabled"])
    return cls(**values)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """Build and validate a Config from a parsed YAML mapping."""
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ConfigError(f"unknown config sections {sorted(unknown)}")
    sections = {name: _build_section(name, raw) for name, raw in data.items()}
    config = Config(**sections)
    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    """Reject ill-posed settings. Raises ConfigError."""
    ind = config.indicators
    for name in ("rsi_period", "macd_fast", "macd_slow", "macd_signal", "bollinger_period"):
        if getattr(ind, name) <= 0:
            raise ConfigError(f"indicators.{name} must be > 0")
    if not ind.ema_periods or any(p <= 0 for p in ind.ema_periods):
        raise ConfigError("indicators.ema_periods must be positive")
    if ind.macd_fast >= ind.macd_slow:
        raise ConfigError("indicators.macd_fast must be < macd_slow")
    if ind.bollinger_std_dev <= 0:
        raise ConfigError("indicators.bollinger_std_dev must be > 0")

    st = config.strategies
    for period in (st.ema_support_period, st.ema_strong_period, st.ema_trend_period):
        if period not in ind.ema_periods:
            raise ConfigError(f"EMA period {period} used by strategies is not in indicators.ema_periods")
    if st.ema_bounce_tolerance <= 0:
        raise ConfigError("strategies.ema_bounce_tolerance must be > 0")
    _check_rsi_thresholds("strategies", st.rsi_oversold, st.rsi_overbought)

    risk = config.risk
    _check_risk("risk", risk.stop_loss_percent, risk.take_profit_percent)
    if risk.take_profit_percent / risk.stop_loss_percent < risk.min_risk_reward:
        raise ConfigError(
            f"risk: take_profit/stop_loss ratio {risk.take_profit_percent / risk.stop_loss_percent:.2f} "
            f"< min_risk_reward {risk.min_risk_reward}"
        )

    sc = config.scanner
    if not 1 <= sc.min_confluence <= len(StrategyName):
        raise ConfigError(f"scanner.min_confluence must be between 1 and {len(StrategyName)}")
    if sc.volume_period <= 0 or sc.volume_multiplier <= 0:
        raise ConfigError("scanner.volume_period and volume_multiplier must be > 0")
    if sc.duplicate_window_minutes <= 0 or sc.duplicate_tolerance <= 0:
        raise ConfigError("scanner.duplicate_window_minutes and duplicate_tolerance must be > 0")
    if sc.max_holding_period <= 0:
        raise ConfigError("scanner.max_holding_period must be > 0")

    bt = config.backtest
    if bt.initial_balance <= 0:
        raise ConfigError("backtest.initial_balance must be > 0")
    _check_risk("backtest", bt.stop_loss_percent, bt.take_profit_percent)
    _check_rsi_thresholds("backtest", bt.rsi_oversold, bt.rsi_overbought)
    if bt.max_holding_period <= 0 or bt.warmup_bars < 1:
        raise ConfigError("backtest.max_holding_period and warmup_bars must be positive")

    if config.market.lookback <= 0:
        raise ConfigError("market.lookback must be > 0")


def _check_risk(section: str, stop_loss_percent: float, take_profit_percent: float) -> None:
    if stop_loss_percent <= 0 or stop_loss_percent >= 100:
        raise ConfigError(f"{section}.stop_loss_percent must be in (0, 100)")
    if take_profit_percent <= stop_loss_percent:
        raise ConfigError(f"{section}.take_profit_percent must be > stop_loss_percent")
    if take_profit_percent >= 100:
        raise ConfigError(f"{section}.take_profit_percent must be < 100")


def _check_rsi_thresholds(section: str, oversold: float, overbought: float) -> None:
    if not 0 < oversold < overbought < 100:
        raise ConfigError(f"{section}: need 0 < rsi_oversold < rsi_overbought < 100")


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> Config:
    """Load config.yaml and overlay with env. Returns a validated Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: Dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    config = config_from_dict(data)

    # Env overrides (for secrets and overrides)
    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    market = replace(
        config.market,
        symbol=env("SYMBOL", config.market.symbol).upper(),
        timeframe=env("TIMEFRAME", config.market.timeframe),
    )
    telegram = replace(
        config.telegram,
        bot_token=env("TELEGRAM_BOT_TOKEN", config.telegram.bot_token),
        chat_id=env("TELEGRAM_CHAT_ID", config.telegram.chat_id),
    )
    logging_settings = replace(config.logging, level=env("LOG_LEVEL", config.logging.level))
    return replace(
        config,
        market=market,
        telegram=telegram,
        logging=logging_settings,
        binance_api_key=env("BINANCE_API_KEY"),
        binance_api_secret=env("BINANCE_API_SECRET"),
    )
