"""
Telegram messaging sink.

Every call returns a plain success value (bool, or the message id for sends)
and never raises: a missing token or chat id, a network error or a rejected
request is logged and reported as "not sent". No retries.
"""

import json
from typing import Optional

import requests
import structlog

from outage_monitor.core.config import settings

logger = structlog.get_logger(__name__)

class TelegramClient:
    """Sends text and chart images to one chat"""

    def __init__(self, token: str = None, chat_id: str = None, api_url: str = None, timeout: int = None):
        self.token = token if token is not None else settings.telegram_bot_token
        self.chat_id = chat_id if chat_id is not None else settings.telegram_chat_id
        self.api_url = (api_url or settings.telegram_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout

    @property
    def configured(self) -> bool:
        return bool(self.token and self.chat_id)

    def _post(self, method: str, **kwargs) -> Optional[dict]:
        if not self.configured:
            logger.warning("Telegram not configured, skipping call", method=method)
            return None

        url = f"{self.api_url}/bot{self.token}/{method}"
        try:
            response = requests.post(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("Telegram request failed", method=method, error=str(e))
            return None

        if response.status_code != 200:
            logger.error("Telegram rejected request", method=method,
                         status_code=response.status_code, body=response.text[:500])
            return None

        try:
            return response.json()
        except ValueError:
            return {"ok": True}

    def send_message(self, text: str) -> bool:
        data = self._post("sendMessage", json={
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        })
        return data is not None

    def send_photo(self, png_data: bytes, caption: str) -> Optional[int]:
        """Upload a PNG with a caption. Returns the new message id."""
        data = self._post(
            "sendPhoto",
            data={"chat_id": self.chat_id, "caption": caption, "parse_mode": "HTML"},
            files={"photo": ("chart.png", png_data, "image/png")},
        )
        if not data or not data.get("ok") or not data.get("result"):
            return None
        return data["result"].get("message_id")

    def edit_message_photo(self, message_id: int, png_data: bytes, caption: str) -> bool:
        """Replace the image and caption of an existing message."""
        media = {
            "type": "photo",
            "media": "attach://photo",
            "caption": caption,
            "parse_mode": "HTML",
        }
        data = self._post(
            "editMessageMedia",
            data={"chat_id": self.chat_id, "message_id": str(message_id), "media": json.dumps(media)},
            files={"photo": ("chart.png", png_data, "image/png")},
        )
        return data is not None
