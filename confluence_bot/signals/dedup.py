"""
Duplicate suppression.

DuplicateGuard: a signal is a duplicate of a recent record with the same strategy and
direction whose entry price is within `tolerance` (relative) of the new entry.

SubmissionCache: caller-owned idempotency cache for repeated submissions of the same
setup from one process, keyed by (strategy, direction, rounded entry price).
"""

from __future__ import annotations
import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Iterable, Tuple

from confluence_bot.core.types import Direction, Signal, StrategyName
from confluence_bot.signals.store import SignalStore

logger = logging.getLogger("confluence_bot.signals.dedup")


class DuplicateGuard:
    """Window and tolerance used to recognize re-detections of the same setup."""

    def __init__(self, window: timedelta = timedelta(hours=1), tolerance: float = 0.01):
        self.window = window
        self.tolerance = tolerance

    def is_duplicate(self, candidate: Signal, recent: Iterable[Signal]) -> bool:
        for existing in recent:
            if existing.strategy != candidate.strategy or existing.direction != candidate.direction:
                continue
            if abs(existing.entry_price - candidate.entry_price) / candidate.entry_price < self.tolerance:
                return True
        return False

    def submit(self, store: SignalStore, signal: Signal, now: datetime) -> bool:
        """Insert the signal unless it duplicates one detected within the window. True if inserted."""
        inserted = store.insert_if_absent(signal, self.is_duplicate, now - self.window)
        if not inserted:
            logger.info("Skipping duplicate signal: %s %s @ %.2f", signal.strategy.value, signal.direction.value, signal.entry_price)
        return inserted


SubmissionKey = Tuple[StrategyName, Direction, int]


class SubmissionCache:
    """Remembers submitted setups for `ttl`; oldest entries are evicted beyond `max_size`."""

    def __init__(self, ttl: timedelta = timedelta(hours=2), max_size: int = 50):
        self.ttl = ttl
        self.max_size = max_size
        self._entries: "OrderedDict[SubmissionKey, datetime]" = OrderedDict()

    @staticmethod
    def key(signal: Signal) -> SubmissionKey:
        return signal.strategy, signal.direction, round(signal.entry_price)

    def evict(self, now: datetime) -> None:
        expired = [k for k, t in self._entries.items() if now - t >= self.ttl]
        for k in expired:
            del self._entries[k]
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def seen(self, signal: Signal, now: datetime) -> bool:
        self.evict(now)
        return self.key(signal) in self._entries

    def add(self, signal: Signal, now: datetime) -> None:
        key = self.key(signal)
        self._entries.pop(key, None)
        self._entries[key] = now
        self.evict(now)

    def discard(self, signal: Signal) -> None:
        """Forget a setup, e.g. after a failed submission so it can be retried."""
        self._entries.pop(self.key(signal), None)

    def __len__(self) -> int:
        return len(self._entries)
