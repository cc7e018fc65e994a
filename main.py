#!/usr/bin/env python3
"""
Confluence scanner CLI: scan | backtest
Usage:
  python main.py scan [--config config.yaml]
  python main.py backtest [--config config.yaml] [--limit 1000]
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from confluence_bot.backtesting.engine import BacktestConfig, BacktestRunner
from confluence_bot.core.config import ConfigError, load_config
from confluence_bot.core.logger import setup_logging
from confluence_bot.data.binance import BinanceMarketData
from confluence_bot.signals.scanner import SignalScanner
from confluence_bot.signals.store import JsonSignalStore
from confluence_bot.utils.telegram import TelegramNotifier


def run_scan(config_path: Path | None) -> int:
    """Fetch the latest candles and run one scan."""
    config = load_config(config_path, ROOT)
    setup_logging(config.logging.level, config.logging.log_dir, config.logging.log_file)
    market = BinanceMarketData(config.binance_api_key, config.binance_api_secret)
    candles = market.get_candles(config.market.symbol, config.market.timeframe, limit=config.market.lookback)
    notifier = TelegramNotifier(
        config.telegram.bot_token,
        config.telegram.chat_id,
        max_holding_period=config.scanner.max_holding_period,
    )
    store_path = config.scanner.signal_store_path
    if not store_path.is_absolute():
        store_path = ROOT / store_path
    scanner = SignalScanner(config, JsonSignalStore(store_path), notifier=notifier)
    result = scanner.scan(candles)
    print("\n--- Scan Result ---")
    print(f"Outcome: {result.outcome.value}")
    print(f"Candidates: {', '.join(f'{c.strategy.value}({c.direction.value})' for c in result.candidates) or 'none'}")
    print(f"Signals detected: {result.signals_detected}, saved: {result.signals_saved}, "
          f"duplicates: {result.duplicates_skipped}, notifications: {result.notifications_sent}")
    for signal in result.saved:
        print(f"\n{signal.direction.value.upper()} @ {signal.entry_price:.2f} "
              f"SL {signal.stop_loss:.2f} TP {signal.take_profit:.2f} ({signal.confidence}%)")
        print(signal.rationale)
    return 0 if result.success else 1


def run_backtest(config_path: Path | None, limit: int) -> int:
    """Run backtest over the most recent `limit` candles."""
    config = load_config(config_path, ROOT)
    setup_logging(config.logging.level, config.logging.log_dir, config.logging.log_file)
    market = BinanceMarketData(config.binance_api_key, config.binance_api_secret)
    candles = market.get_candles(config.market.symbol, config.market.timeframe, limit=limit)
    runner = BacktestRunner(
        BacktestConfig.from_settings(config.backtest, config.strategies, config.scanner.min_confluence),
        config.indicators,
        config.strategies,
    )
    result = runner.run(candles)
    m = result.metrics
    print("\n--- Backtest Results ---")
    print(f"Period: {result.start_date} -> {result.end_date}")
    print(f"Total trades: {m.total_trades} (wins: {m.winning_trades}, losses: {m.losing_trades})")
    print(f"Win rate: {m.win_rate:.1f}%")
    print(f"Total P&L: {m.total_pnl_percent:.2f}% (avg {m.average_pnl_percent:.2f}%/trade)")
    print(f"Max drawdown: {m.max_drawdown:.2f}%")
    print(f"Profit factor: {m.profit_factor:.2f}")
    print(f"Sharpe ratio: {m.sharpe_ratio:.2f}")
    print(f"Balance: {result.initial_balance:.2f} -> {result.final_balance:.2f}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Confluence signal scanner CLI")
    parser.add_argument("mode", choices=["scan", "backtest"], help="Run one scan or a backtest")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--limit", type=int, default=1000, help="Candles to fetch for backtest")
    args = parser.parse_args()
    try:
        if args.mode == "scan":
            return run_scan(args.config)
        return run_backtest(args.config, args.limit)
    except ConfigError as e:
        logging.getLogger("confluence_bot").error("Invalid configuration: %s", e)
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    exit(main())
