"""Unit tests for analytics.signal_stats."""

import pytest
from confluence_bot.analytics.signal_stats import compute_signal_stats
from confluence_bot.core.types import Direction, SignalStatus

from conftest import T0, build_signal


def test_signal_stats():
    signals = [
        build_signal(signal_id="a", confidence=85).closed(SignalStatus.TRIGGERED, 108.0, 8.0, T0),
        build_signal(signal_id="b", confidence=95, direction=Direction.SHORT).closed(
            SignalStatus.TRIGGERED, 104.0, -4.0, T0
        ),
        build_signal(signal_id="c", confidence=85).closed(SignalStatus.EXPIRED, 101.0, 1.0, T0),
        build_signal(signal_id="d", confidence=95),
        build_signal(signal_id="e", confidence=70).closed(SignalStatus.TRIGGERED, 96.0, -4.0, T0),
    ]
    stats = compute_signal_stats(signals)
    assert stats.total == 4
    assert stats.active == 1
    assert stats.triggered == 2
    assert stats.expired == 1
    assert stats.strong_confluence == 2
    assert stats.full_confluence == 2
    assert stats.long_signals == 3
    assert stats.short_signals == 1
    assert stats.total_pnl == pytest.approx(5.0)
    assert stats.avg_pnl == pytest.approx(5.0 / 3)
    assert stats.win_rate == pytest.approx(200 / 3)


def test_signal_stats_empty():
    stats = compute_signal_stats([])
    assert stats.total == 0
    assert stats.win_rate == 0.0
