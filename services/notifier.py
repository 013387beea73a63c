#Description: Fan-out of one message to every configured notification channel; channel failures are logged only.

from typing import Iterable, List, Protocol

from utils.logging import logger


class NotificationChannel(Protocol):
    name: str

    @property
    def enabled(self) -> bool: ...

    def send(self, subject: str | None, body: str) -> bool: ...


class Notifier:
    def __init__(self, channels: Iterable[NotificationChannel]):
        self.channels: List[NotificationChannel] = list(channels)

    def notify(self, subject: str | None, body: str) -> int:
        """Send to each enabled channel independently. Returns how many channels accepted it."""
        delivered = 0
        for ch in self.channels:
            if not ch.enabled:
                continue
            try:
                if ch.send(subject, body):
                    delivered += 1
            except Exception as e:
                logger.warning(f"Notification via {ch.name} failed: {e}")
        return delivered
