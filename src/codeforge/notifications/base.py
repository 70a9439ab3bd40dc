"""Notifier interface."""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Delivers plain-text messages to some external sink."""

    @abstractmethod
    def send(self, message: str) -> None:
        """Deliver a message.

        Raises:
            NotificationError: If delivery fails
        """
        pass


class NullNotifier(Notifier):
    """Discards every message."""

    def send(self, message: str) -> None:
        pass
