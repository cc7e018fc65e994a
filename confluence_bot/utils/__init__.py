"""Utils: Telegram, timeframes."""

from confluence_bot.utils.telegram import send_telegram, TelegramNotifier
from confluence_bot.utils.timeframes import timeframe_minutes, ms_to_datetime

__all__ = ["send_telegram", "TelegramNotifier", "timeframe_minutes", "ms_to_datetime"]
