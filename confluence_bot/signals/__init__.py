"""Signals: confluence aggregation, duplicate suppression, position resolution, scanning."""

from confluence_bot.signals.confluence import ConfluenceAggregator
from confluence_bot.signals.dedup import DuplicateGuard, SubmissionCache
from confluence_bot.signals.notify import Notifier, signal_payload, exit_payload
from confluence_bot.signals.store import SignalStore, InMemorySignalStore, JsonSignalStore
from confluence_bot.signals.resolver import (
    PositionResolver,
    Resolution,
    ExitDecision,
    evaluate_exit,
    pnl_percent,
)
from confluence_bot.signals.scanner import SignalScanner, ScanResult, ScanOutcome

__all__ = [
    "ConfluenceAggregator",
    "DuplicateGuard",
    "SubmissionCache",
    "Notifier",
    "signal_payload",
    "exit_payload",
    "SignalStore",
    "InMemorySignalStore",
    "JsonSignalStore",
    "PositionResolver",
    "Resolution",
    "ExitDecision",
    "evaluate_exit",
    "pnl_percent",
    "SignalScanner",
    "ScanResult",
    "ScanOutcome",
]
