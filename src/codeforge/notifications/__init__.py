"""Notification sinks."""

from .base import Notifier, NullNotifier
from .telegram import TelegramNotifier, check_telegram_config

__all__ = ["Notifier", "NullNotifier", "TelegramNotifier", "check_telegram_config"]
