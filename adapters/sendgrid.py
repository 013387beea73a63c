#Description: SendGrid e-mail notification channel (v3 mail/send).

import httpx

from utils.config import settings
from utils.logging import logger


class SendGridChannel:
    name = "sendgrid"
    API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(self, secret: str | None = None, to: str | None = None, sender: str | None = None,
                 client: httpx.Client | None = None):
        self.secret = secret or settings.SENDGRID_SECRET
        self.to = to or settings.SENDGRID_TO
        self.sender = sender or settings.SENDGRID_FROM
        self.client = client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
        if not self.enabled:
            logger.info("E-mail notifications disabled - missing SENDGRID_SECRET, SENDGRID_TO or SENDGRID_FROM")

    @property
    def enabled(self) -> bool:
        return bool(self.secret and self.to and self.sender)

    def send(self, subject: str | None, body: str) -> bool:
        if not self.enabled:
            return False
        payload = {
            "personalizations": [{"to": [{"email": self.to}]}],
            "from": {"email": self.sender},
            "subject": subject or "Binance DCA Bot",
            "content": [{"type": "text/plain", "value": body}],
        }
        r = self.client.post(self.API_URL, json=payload, headers={"Authorization": f"Bearer {self.secret}"})
        r.raise_for_status()
        return True
