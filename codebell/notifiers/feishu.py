"""
Feishu custom bot: interactive card via incoming webhook.

Reply shape: {"code": 0, "msg": "success"} on success.
"""

import httpx
import structlog

from codebell.notifiers.base import (
    DEFAULT_TIMEOUT,
    NOT_CONFIGURED,
    DeliveryOutcome,
    Level,
    Notification,
    china_now,
    emoji_for,
    failure,
    is_zero,
    mask_url,
    metadata_lines,
    post_json,
    transport_error,
)

logger = structlog.get_logger()

PLATFORM = "feishu"
DEFAULT_TITLE = "通知"

CARD_TEMPLATES = {
    Level.INFO: "blue",
    Level.SUCCESS: "green",
    Level.WARNING: "orange",
    Level.ERROR: "red",
}


class FeishuNotifier:
    platform = PLATFORM

    def __init__(
        self,
        webhook_url: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self._webhook_url)

    def build_payload(self, notification: Notification) -> dict:
        title = notification.title or DEFAULT_TITLE
        elements: list[dict] = [
            {"tag": "div", "text": {"tag": "lark_md", "content": notification.message}},
        ]
        lines = metadata_lines(notification.metadata, "- **{key}**: {value}")
        if lines:
            elements.append({"tag": "hr"})
            elements.append({
                "tag": "div",
                "text": {"tag": "lark_md", "content": "**元数据**:\n" + "\n".join(lines)},
            })
        elements.append({
            "tag": "note",
            "elements": [{"tag": "plain_text", "content": f"发送时间: {china_now()}"}],
        })

        return {
            "msg_type": "interactive",
            "card": {
                "header": {
                    "title": {
                        "tag": "plain_text",
                        "content": f"{emoji_for(notification.level)} {title}",
                    },
                    "template": CARD_TEMPLATES.get(notification.level, "blue"),
                },
                "elements": elements,
            },
        }

    async def send(self, notification: Notification) -> DeliveryOutcome:
        if not self.is_configured():
            return failure(PLATFORM, NOT_CONFIGURED)

        try:
            data = await post_json(
                self._webhook_url,
                self.build_payload(notification),
                timeout=self._timeout,
                transport=self._transport,
            )
        except httpx.HTTPError as e:
            logger.warning("notify.feishu.transport_failed", target=mask_url(self._webhook_url), error=str(e))
            return failure(PLATFORM, transport_error(e))

        if is_zero(data.get("code")):
            logger.info("notify.feishu.sent", target=mask_url(self._webhook_url))
            return DeliveryOutcome(platform=PLATFORM, success=True)

        logger.warning("notify.feishu.rejected", detail=data)
        return failure(PLATFORM, data.get("msg"))
