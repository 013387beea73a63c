#Description: Telegram chat notification channel (Bot API sendMessage, Markdown).

import httpx

from utils.config import settings
from utils.logging import logger


class TelegramChannel:
    name = "telegram"
    API_URL = "https://api.telegram.org"

    def __init__(self, token: str | None = None, chat_id: str | None = None, client: httpx.Client | None = None):
        self.token = token or settings.TELEGRAM_TOKEN
        self.chat_id = chat_id or settings.TELEGRAM_CHAT_ID
        self.client = client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
        if not self.enabled:
            logger.info("Telegram notifications disabled - missing TELEGRAM_TOKEN or TELEGRAM_CHAT_ID")

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    def send(self, subject: str | None, body: str) -> bool:
        if not self.enabled:
            return False
        text = f"*{subject}*\n\n{body}" if subject else body
        r = self.client.post(
            f"{self.API_URL}/bot{self.token}/sendMessage",
            json={"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"},
        )
        r.raise_for_status()
        return True
