"""
Signal store contract, an in-memory implementation and a JSON-file implementation.

The check-recent -> insert pair must be one atomic step so two concurrent scans
cannot both record the same setup; `insert_if_absent` is that step.
"""

from __future__ import annotations
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from confluence_bot.core.types import Direction, Signal, SignalStateError, SignalStatus, StrategyName

logger = logging.getLogger("confluence_bot.signals.store")


class SignalStore(ABC):
    """Persistence collaborator for signals."""

    @abstractmethod
    def recent_signals(self, since: datetime) -> List[Signal]:
        """Signals detected at or after `since`, any status."""
        pass

    @abstractmethod
    def active_signals(self) -> List[Signal]:
        pass

    @abstractmethod
    def insert_if_absent(
        self,
        signal: Signal,
        is_duplicate: Callable[[Signal, List[Signal]], bool],
        since: datetime,
    ) -> bool:
        """Insert unless is_duplicate(signal, recent_signals(since)). Returns True if inserted."""
        pass

    @abstractmethod
    def update(self, signal: Signal) -> None:
        """Replace the stored record with the same id. Closed records cannot change."""
        pass

    @abstractmethod
    def all_signals(self) -> List[Signal]:
        pass


class InMemorySignalStore(SignalStore):
    """Dict-backed store keyed by signal id. Thread-safe."""

    def __init__(self):
        self._signals: Dict[str, Signal] = {}
        self._lock = threading.Lock()

    def recent_signals(self, since: datetime) -> List[Signal]:
        with self._lock:
            return self._recent(since)

    def _recent(self, since: datetime) -> List[Signal]:
        return [s for s in self._signals.values() if s.detected_at >= since]

    def active_signals(self) -> List[Signal]:
        with self._lock:
            return [s for s in self._signals.values() if s.status == SignalStatus.ACTIVE]

    def insert_if_absent(self, signal, is_duplicate, since) -> bool:
        with self._lock:
            if is_duplicate(signal, self._recent(since)):
                return False
            self._signals[signal.id] = signal
            self._saved()
            return True

    def update(self, signal: Signal) -> None:
        with self._lock:
            existing = self._signals.get(signal.id)
            if existing is None:
                raise KeyError(f"unknown signal id {signal.id}")
            if not existing.is_open:
                raise SignalStateError(f"signal {signal.id} is already {existing.status.value}")
            self._signals[signal.id] = signal
            self._saved()

    def all_signals(self) -> List[Signal]:
        with self._lock:
            return list(self._signals.values())

    def _saved(self) -> None:
        """Called under the lock after every change."""


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


def signal_to_dict(signal: Signal) -> Dict[str, Any]:
    """JSON-safe record of a signal."""
    return {
        "id": signal.id,
        "strategy": signal.strategy.value,
        "direction": signal.direction.value,
        "confidence": signal.confidence,
        "entry_price": signal.entry_price,
        "stop_loss": signal.stop_loss,
        "take_profit": signal.take_profit,
        "risk_reward": signal.risk_reward,
        "rationale": signal.rationale,
        "timeframe": signal.timeframe,
        "detected_at": _iso(signal.detected_at),
        "status": signal.status.value,
        "triggered_at": _iso(signal.triggered_at),
        "closed_at": _iso(signal.closed_at),
        "close_price": signal.close_price,
        "pnl_percent": signal.pnl_percent,
        "aligned_strategies": [s.value for s in signal.aligned_strategies],
    }


def signal_from_dict(data: Dict[str, Any]) -> Signal:
    return Signal(
        id=data["id"],
        strategy=StrategyName(data["strategy"]),
        direction=Direction(data["direction"]),
        confidence=int(data["confidence"]),
        entry_price=float(data["entry_price"]),
        stop_loss=float(data["stop_loss"]),
        take_profit=float(data["take_profit"]),
        risk_reward=float(data["risk_reward"]),
        rationale=data["rationale"],
        timeframe=data["timeframe"],
        detected_at=_parse_iso(data["detected_at"]),
        status=SignalStatus(data["status"]),
        triggered_at=_parse_iso(data.get("triggered_at")),
        closed_at=_parse_iso(data.get("closed_at")),
        close_price=data.get("close_price"),
        pnl_percent=data.get("pnl_percent"),
        aligned_strategies=tuple(StrategyName(s) for s in data.get("aligned_strategies", [])),
    )


class JsonSignalStore(InMemorySignalStore):
    """
    In-memory store mirrored to a JSON file, so repeated scan runs see the signals
    saved by earlier runs. Every change rewrites the file (tmp file + os.replace).
    The lock serializes writers within one process only.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.is_file():
            return
        with open(self.path, "r", encoding="utf-8") as f:
            records = json.load(f)
        for record in records:
            signal = signal_from_dict(record)
            self._signals[signal.id] = signal
        logger.debug("Loaded %d signals from %s", len(self._signals), self.path)

    def _saved(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([signal_to_dict(s) for s in self._signals.values()], f, indent=2)
        os.replace(tmp, self.path)
