"""Telegram notifications. Never log token or chat_id."""

from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from confluence_bot.core.types import ExitReason
from confluence_bot.signals.notify import Notifier, exit_payload, signal_payload

logger = logging.getLogger("confluence_bot.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "", parse_mode: str = "Markdown") -> bool:
    """Send message to Telegram. Returns True on success. Uses empty strings if not configured."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text, "parse_mode": parse_mode}
        r = requests.post(url, json=payload, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.exception("Telegram error: %s", e)
        return False


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _stamp(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).strftime("%a, %d %b %Y %H:%M:%S UTC")


def format_signal_message(payload: dict, max_holding_period: int, now: Optional[datetime] = None) -> str:
    direction = "LONG" if payload["direction"] == "long" else "SHORT"
    aligned = ", ".join(payload["aligned_strategies"]) or payload["strategy_label"]
    return "\n".join([
        f"*{payload['headline']}*",
        "",
        f"*{direction}* | {payload['timeframe']}",
        "",
        f"*Aligned Strategies:* {aligned}",
        f"*Confidence:* {payload['confidence']}%",
        "",
        f"*Entry:* {_money(payload['entry_price'])}",
        f"*Stop Loss:* {_money(payload['stop_loss'])}",
        f"*Take Profit:* {_money(payload['take_profit'])}",
        f"*Risk/Reward:* {payload['risk_reward']:.2f}",
        "",
        f"*Max Hold:* {max_holding_period} candles",
        "",
        "*Analysis:*",
        payload["rationale"],
        "",
        _stamp(now),
    ])


def format_exit_message(payload: dict, now: Optional[datetime] = None) -> str:
    pnl = payload["pnl_percent"]
    sign = "+" if pnl >= 0 else ""
    direction = payload["direction"].upper()
    if payload["hit_type"] == ExitReason.TIMEOUT.value:
        status = "PROFIT" if pnl > 0 else "BREAKEVEN" if pnl == 0 else "LOSS"
        head = [
            "*TRADE EXPIRED - EXIT NOW*",
            "",
            f"*{status}*",
            "",
            f"{direction} position timed out after the maximum holding period.",
        ]
        tail = ["", "*Action Required:* Close this position manually."]
    else:
        is_tp = payload["hit_type"] == ExitReason.TAKE_PROFIT.value
        head = [
            f"*{'TAKE PROFIT HIT' if is_tp else 'STOP LOSS HIT'}*",
            "",
            f"Trade {'WON' if is_tp else 'LOST'}",
            "",
            f"*Direction:* {direction}",
            f"*Strategy:* {payload['strategy_label']}",
        ]
        tail = []
    body = [
        "",
        f"*Entry:* {_money(payload['entry_price'])}",
        f"*Exit:* {_money(payload['exit_price'])}",
        f"*P&L:* {sign}{pnl:.2f}%",
    ]
    return "\n".join(head + body + tail + ["", _stamp(now)])


class TelegramNotifier(Notifier):
    """Formats signal and exit payloads as Markdown and posts them to one chat."""

    def __init__(self, bot_token: str = "", chat_id: str = "", max_holding_period: int = 36):
        self._bot_token = bot_token
        self._chat_id = chat_id
        self.max_holding_period = max_holding_period

    @property
    def configured(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    def notify_signal(self, signal) -> bool:
        text = format_signal_message(signal_payload(signal), self.max_holding_period)
        return send_telegram(text, self._bot_token, self._chat_id)

    def notify_exit(self, resolution) -> bool:
        text = format_exit_message(exit_payload(resolution))
        return send_telegram(text, self._bot_token, self._chat_id)
