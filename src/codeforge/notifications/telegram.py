"""Telegram Bot API notifier."""

import logging
from typing import Callable, Optional, Tuple
import httpx
from ..errors import NotificationError
from ..models import Settings
from .base import Notifier

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
TEST_MESSAGE = "Test message from Code Forge! Configuration is working."


def _send_message(api_key: str, chat_id: str, text: str, timeout: float) -> httpx.Response:
    return httpx.post(
        f"{TELEGRAM_API_URL}/bot{api_key}/sendMessage",
        json={"chat_id": chat_id, "text": text},
        timeout=timeout,
    )


class TelegramNotifier(Notifier):
    """Sends messages through a Telegram bot.

    Credentials are read from the settings on every send, so edits take
    effect without rebuilding the notifier. Missing credentials mean
    notifications are turned off.
    """

    def __init__(self, settings: Callable[[], Settings], timeout: float = 10.0):
        self._settings = settings
        self.timeout = timeout

    def send(self, message: str) -> None:
        settings = self._settings()
        if not (settings.telegram_api_key and settings.telegram_chat_id):
            logger.debug("Telegram credentials not set, skipping notification")
            return

        try:
            response = _send_message(
                settings.telegram_api_key, settings.telegram_chat_id, message, self.timeout
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Telegram notification failed: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"Telegram notification failed: {response.reason_phrase} {response.text}"
            )
        logger.info("Telegram notification sent successfully.")


def check_telegram_config(
    api_key: Optional[str], chat_id: Optional[str], timeout: float = 10.0
) -> Tuple[bool, Optional[str]]:
    """Send a test message with the given credentials.

    Returns:
        ``(True, None)`` on success, otherwise ``(False, error message)``
    """
    if not api_key or not chat_id:
        return False, "API Key and Chat ID are required."

    try:
        response = _send_message(api_key, chat_id, TEST_MESSAGE, timeout)
    except httpx.HTTPError as e:
        return False, f"Network or fetch error: {e}"

    if response.is_success:
        return True, None
    return False, f"Telegram API Error: {response.reason_phrase} - {response.text}"
