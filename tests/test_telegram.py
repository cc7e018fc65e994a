"""Unit tests for utils.telegram."""

from datetime import datetime, timezone

import pytest
import requests
from confluence_bot.core.types import ExitReason, SignalStatus, StrategyName
from confluence_bot.signals.notify import exit_payload, signal_payload
from confluence_bot.signals.resolver import Resolution
from confluence_bot.utils import telegram
from confluence_bot.utils.telegram import (
    TelegramNotifier,
    format_exit_message,
    format_signal_message,
    send_telegram,
)

from conftest import T0, build_signal

NOW = datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)


class _Response:
    def __init__(self, status_code=200, text="ok"):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def posts(monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json))
        return _Response()

    monkeypatch.setattr(telegram.requests, "post", fake_post)
    return calls


def _resolution(reason, status, close_price, pnl):
    signal = build_signal().closed(status, close_price, pnl, NOW)
    return Resolution(signal=signal, reason=reason)


def test_send_skipped_when_not_configured(posts):
    assert send_telegram("hello") is False
    assert posts == []


def test_send_posts_markdown(posts):
    assert send_telegram("hello", "token", "42") is True
    url, body = posts[0]
    assert url.endswith("/bottoken/sendMessage")
    assert body == {"chat_id": "42", "text": "hello", "parse_mode": "Markdown"}


def test_send_non_200_is_failure(monkeypatch):
    monkeypatch.setattr(telegram.requests, "post", lambda url, json, timeout: _Response(400, "bad"))
    assert send_telegram("hello", "token", "42") is False


def test_send_network_error_is_failure(monkeypatch):
    def boom(url, json, timeout):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(telegram.requests, "post", boom)
    assert send_telegram("hello", "token", "42") is False


def test_signal_payload_and_message():
    signal = build_signal()
    payload = signal_payload(signal)
    assert payload["strategy_label"] == "EMA Bounce"
    assert payload["detected_at"] == T0.isoformat()
    text = format_signal_message(payload, 36, NOW)
    assert "*LONG* | 1h" in text
    assert "*Entry:* $100.00" in text
    assert "*Stop Loss:* $96.00" in text
    assert "*Take Profit:* $108.00" in text
    assert "*Max Hold:* 36 candles" in text
    assert text.endswith("Tue, 02 Jan 2024 09:30:00 UTC")


def test_confluence_headline():
    signal = build_signal()
    signal.aligned_strategies = (StrategyName.EMA_BOUNCE, StrategyName.MACD_CROSS, StrategyName.RSI_REVERSAL)
    payload = signal_payload(signal)
    assert payload["headline"] == "STRONG CONFLUENCE (3/4)"
    assert payload["aligned_strategies"] == ["EMA Bounce", "MACD Cross", "RSI Reversal"]


def test_take_profit_message():
    payload = exit_payload(_resolution(ExitReason.TAKE_PROFIT, SignalStatus.TRIGGERED, 108.0, 8.0))
    assert payload["hit_type"] == "take_profit"
    assert payload["status"] == "triggered"
    text = format_exit_message(payload, NOW)
    assert "*TAKE PROFIT HIT*" in text
    assert "Trade WON" in text
    assert "*P&L:* +8.00%" in text


def test_stop_loss_message():
    text = format_exit_message(exit_payload(_resolution(ExitReason.STOP_LOSS, SignalStatus.TRIGGERED, 96.0, -4.0)), NOW)
    assert "*STOP LOSS HIT*" in text
    assert "Trade LOST" in text
    assert "*P&L:* -4.00%" in text


def test_expiry_message():
    text = format_exit_message(exit_payload(_resolution(ExitReason.TIMEOUT, SignalStatus.EXPIRED, 99.0, -1.0)), NOW)
    assert "*TRADE EXPIRED - EXIT NOW*" in text
    assert "*LOSS*" in text
    assert "Close this position manually" in text


def test_notifier_sends_both_kinds(posts):
    notifier = TelegramNotifier("token", "42", max_holding_period=24)
    assert notifier.configured is True
    assert notifier.notify_signal(build_signal()) is True
    assert notifier.notify_exit(_resolution(ExitReason.TAKE_PROFIT, SignalStatus.TRIGGERED, 108.0, 8.0)) is True
    assert "*Max Hold:* 24 candles" in posts[0][1]["text"]
    assert "TAKE PROFIT HIT" in posts[1][1]["text"]


def test_unconfigured_notifier(posts):
    notifier = TelegramNotifier()
    assert notifier.configured is False
    assert notifier.notify_signal(build_signal()) is False
    assert posts == []
