"""
Signal scanner: one scan over the latest candles.

indicators -> detection (volume gate) -> confluence -> resolve open signals ->
duplicate-guarded insert -> notifications. Store and notifier failures are recorded in
the result and never undo what was already detected or saved.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional, Sequence

from confluence_bot.core.config import Config
from confluence_bot.core.types import Candle, Signal, StrategyCandidate
from confluence_bot.data.candles import candles_to_frame
from confluence_bot.indicators.engine import compute_indicators
from confluence_bot.risk.manager import RiskManager
from confluence_bot.signals.confluence import ConfluenceAggregator
from confluence_bot.signals.dedup import DuplicateGuard, SubmissionCache
from confluence_bot.signals.notify import Notifier
from confluence_bot.signals.resolver import PositionResolver, Resolution
from confluence_bot.signals.store import SignalStore
from confluence_bot.strategies.base import BaseDetector
from confluence_bot.strategies.detection import build_detectors, detect_candidates

logger = logging.getLogger("confluence_bot.scanner")


class ScanOutcome(str, Enum):
    NO_CANDIDATES = "no_candidates"
    NO_CONFLUENCE = "no_confluence"
    ALL_DUPLICATES = "all_duplicates"
    SAVED = "saved"
    FAILED = "failed"


@dataclass
class ScanResult:
    """What one scan found and did."""
    candidates: List[StrategyCandidate] = field(default_factory=list)
    signals: List[Signal] = field(default_factory=list)
    saved: List[Signal] = field(default_factory=list)
    resolutions: List[Resolution] = field(default_factory=list)
    duplicates_skipped: int = 0
    notifications_sent: int = 0
    volume_ratio: Optional[float] = None
    errors: List[str] = field(default_factory=list)

    @property
    def signals_detected(self) -> int:
        return len(self.signals)

    @property
    def signals_saved(self) -> int:
        return len(self.saved)

    @property
    def outcome(self) -> ScanOutcome:
        if not self.candidates:
            return ScanOutcome.NO_CANDIDATES
        if not self.signals:
            return ScanOutcome.NO_CONFLUENCE
        if self.saved:
            return ScanOutcome.SAVED
        if self.duplicates_skipped == len(self.signals):
            return ScanOutcome.ALL_DUPLICATES
        return ScanOutcome.FAILED

    @property
    def success(self) -> bool:
        return not self.errors


class SignalScanner:
    """Runs the detection pipeline on the last candle of a series."""

    def __init__(
        self,
        config: Config,
        store: SignalStore,
        notifier: Optional[Notifier] = None,
        detectors: Optional[List[BaseDetector]] = None,
        submission_cache: Optional[SubmissionCache] = None,
    ):
        self.config = config
        self.store = store
        self.notifier = notifier
        self.submission_cache = submission_cache
        sc = config.scanner
        self.detectors = detectors if detectors is not None else build_detectors(
            config.strategies, volume_period=sc.volume_period
        )
        self.aggregator = ConfluenceAggregator(
            RiskManager(
                config.risk.stop_loss_percent,
                config.risk.take_profit_percent,
                config.risk.min_risk_reward,
            ),
            min_confluence=sc.min_confluence,
        )
        self.guard = DuplicateGuard(
            window=timedelta(minutes=sc.duplicate_window_minutes),
            tolerance=sc.duplicate_tolerance,
        )
        self.resolver = PositionResolver(sc.max_holding_period, config.market.timeframe)

    def detect(self, candles: Sequence[Candle], now: Optional[datetime] = None) -> ScanResult:
        """Detection only: candidates and aggregated signals for the last candle. Nothing is stored."""
        now = now or datetime.now(timezone.utc)
        result = ScanResult()
        if len(candles) < 2:
            logger.info("Not enough candles to scan (%d)", len(candles))
            return result
        df = compute_indicators(candles_to_frame(candles), self.config.indicators)
        last = len(df) - 1
        sc = self.config.scanner
        detection = detect_candidates(df, last, self.detectors, sc.volume_period, sc.volume_multiplier)
        result.candidates = detection.candidates
        result.volume_ratio = detection.volume_ratio
        result.signals = self.aggregator.aggregate(
            detection.candidates,
            float(df["close"].iloc[last]),
            self.config.market.timeframe,
            now,
        )
        return result

    def resolve_positions(self, candle: Candle, now: Optional[datetime] = None, result: Optional[ScanResult] = None) -> ScanResult:
        """Close active signals whose stop, target, or holding period was reached on `candle`."""
        now = now or datetime.now(timezone.utc)
        result = result if result is not None else ScanResult()
        try:
            active = self.store.active_signals()
        except Exception as e:
            logger.exception("Could not load active signals: %s", e)
            result.errors.append(f"load active signals: {e}")
            return result
        for resolution in self.resolver.resolve_all(active, candle, now):
            try:
                self.store.update(resolution.signal)
            except Exception as e:
                logger.exception("Could not update signal %s: %s", resolution.signal.id, e)
                result.errors.append(f"update {resolution.signal.id}: {e}")
                continue
            result.resolutions.append(resolution)
            self._notify(lambda n: n.notify_exit(resolution), result)
        return result

    def scan(self, candles: Sequence[Candle], now: Optional[datetime] = None) -> ScanResult:
        """Full scan: detect, resolve open signals on the latest candle, save new signals, notify."""
        now = now or datetime.now(timezone.utc)
        logger.info(
            "Scan started: %d candles, min confluence %d, volume %.1fx",
            len(candles),
            self.config.scanner.min_confluence,
            self.config.scanner.volume_multiplier,
        )
        result = self.detect(candles, now)
        if candles:
            self.resolve_positions(candles[-1], now, result)

        for signal in result.signals:
            if self.submission_cache is not None and self.submission_cache.seen(signal, now):
                result.duplicates_skipped += 1
                continue
            try:
                inserted = self.guard.submit(self.store, signal, now)
            except Exception as e:
                logger.exception("Could not save signal %s %s: %s", signal.strategy.value, signal.direction.value, e)
                result.errors.append(f"save {signal.strategy.value} {signal.direction.value}: {e}")
                continue
            if self.submission_cache is not None:
                self.submission_cache.add(signal, now)
            if not inserted:
                result.duplicates_skipped += 1
                continue
            result.saved.append(signal)
            logger.info("New signal saved: %s %s @ %.2f", signal.strategy.value, signal.direction.value, signal.entry_price)
            self._notify(lambda n: n.notify_signal(signal), result)

        logger.info(
            "Scan complete (%s): %d detected, %d saved, %d duplicates, %d closed, %d notifications",
            result.outcome.value,
            result.signals_detected,
            result.signals_saved,
            result.duplicates_skipped,
            len(result.resolutions),
            result.notifications_sent,
        )
        return result

    def _notify(self, send, result: ScanResult) -> None:
        if self.notifier is None:
            return
        try:
            if send(self.notifier):
                result.notifications_sent += 1
        except Exception as e:
            logger.exception("Notification failed: %s", e)
            result.errors.append(f"notify: {e}")
