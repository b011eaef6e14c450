from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<.*?>")
_IMG_RE = re.compile(r'<img.*?src="(.*?)".*?>')


def extract_message(payload: dict[str, Any]) -> Optional[dict[str, str]]:
    """Sender and text of the first message in a WhatsApp Business webhook payload."""
    try:
        value = payload["entry"][0]["changes"][0]["value"]
        message = value["messages"][0]
    except (KeyError, IndexError, TypeError):
        return None

    msg_type = message.get("type")
    if msg_type == "text":
        text = (message.get("text") or {}).get("body") or ""
    elif msg_type in {"image", "document"}:
        media = message.get(msg_type) or {}
        text = media.get("caption") or message.get("caption") or "File uploaded"
    else:
        text = ""
    return {"from": str(message.get("from") or ""), "text": text, "type": str(msg_type or "")}


class WhatsAppClient:
    def __init__(self, api_url: Optional[str], api_token: Optional[str], client: Optional[httpx.Client] = None) -> None:
        self.api_url = (api_url or "").rstrip("/")
        self.api_token = api_token or ""
        self._client = client or httpx.Client(timeout=10.0)

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_token)

    def _post(self, body: dict[str, Any]) -> None:
        response = self._client.post(
            f"{self.api_url}/messages",
            json={"messaging_product": "whatsapp", "recipient_type": "individual", **body},
            headers={"Authorization": f"Bearer {self.api_token}"},
        )
        response.raise_for_status()

    def send_message(self, to: str, message: str) -> bool:
        if not self.configured:
            logger.error("WhatsApp API is not configured; dropping reply to %s", to)
            return False

        image_urls = _IMG_RE.findall(message)
        text = _TAG_RE.sub("", _IMG_RE.sub("[Image]", message)).strip() if image_urls else message
        try:
            self._post({"to": to, "type": "text", "text": {"body": text}})
            for url in image_urls:
                self._post({"to": to, "type": "image", "image": {"link": url}})
        except httpx.HTTPError:
            logger.exception("Error sending WhatsApp message to %s", to)
            return False
        return True

    def close(self) -> None:
        self._client.close()
