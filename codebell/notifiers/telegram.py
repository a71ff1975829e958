"""
Telegram Bot API: sendMessage with MarkdownV2 parse mode.

MarkdownV2 rejects any unescaped reserved character, so every user-supplied
piece of text goes through escape_markdown before it is embedded.
Reply shape: {"ok": true, "result": {"message_id": 42, ...}} on success,
{"ok": false, "description": "..."} otherwise.
"""

import re
from datetime import datetime

import httpx
import structlog

from codebell.notifiers.base import (
    DEFAULT_TIMEOUT,
    NOT_CONFIGURED,
    DeliveryOutcome,
    Notification,
    emoji_for,
    failure,
    post_json,
    transport_error,
)

logger = structlog.get_logger()

PLATFORM = "telegram"
DEFAULT_TITLE = "Notification"
DEFAULT_API_BASE = "https://api.telegram.org"

_MARKDOWN_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!])")


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def local_now() -> str:
    # en-US style, e.g. "10/18/2026, 08:15:00 PM"
    return datetime.now().strftime("%m/%d/%Y, %I:%M:%S %p")


class TelegramNotifier:
    platform = PLATFORM

    def __init__(
        self,
        bot_token: str = "",
        chat_id: str = "",
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self._bot_token) and bool(self._chat_id)

    @property
    def send_url(self) -> str:
        return f"{self._api_base}/bot{self._bot_token}/sendMessage"

    def render_text(self, notification: Notification) -> str:
        title = escape_markdown(notification.title or DEFAULT_TITLE)
        parts = [
            f"{emoji_for(notification.level)} *{title}*",
            escape_markdown(notification.message),
        ]
        if notification.metadata:
            lines = [
                f"• *{escape_markdown(str(key))}*: {escape_markdown(str(value))}"
                for key, value in notification.metadata.items()
            ]
            parts.append("*Metadata*:\n" + "\n".join(lines))
        parts.append(f"_🕐 {escape_markdown(local_now())}_")
        return "\n\n".join(parts)

    def build_payload(self, notification: Notification) -> dict:
        return {
            "chat_id": self._chat_id,
            "text": self.render_text(notification),
            "parse_mode": "MarkdownV2",
        }

    async def send(self, notification: Notification) -> DeliveryOutcome:
        if not self.is_configured():
            return failure(PLATFORM, NOT_CONFIGURED)

        try:
            data = await post_json(
                self.send_url,
                self.build_payload(notification),
                timeout=self._timeout,
                transport=self._transport,
            )
        except httpx.HTTPError as e:
            # Error text may embed the URL, which contains the bot token
            error = transport_error(e).replace(self._bot_token, "<token>")
            logger.warning("notify.telegram.transport_failed", error=error)
            return failure(PLATFORM, error)

        if data.get("ok") is True:
            result = data.get("result") or {}
            message_id = result.get("message_id") if isinstance(result, dict) else None
            logger.info("notify.telegram.sent", chat_id=self._chat_id, message_id=message_id)
            return DeliveryOutcome(
                platform=PLATFORM,
                success=True,
                message_id=str(message_id) if message_id is not None else None,
            )

        logger.warning("notify.telegram.rejected", detail=data)
        return failure(PLATFORM, data.get("description"))
