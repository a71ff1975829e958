"""WeCom (WeChat Work) group robot: markdown message via webhook."""

import httpx
import structlog

from codebell.notifiers.base import (
    DEFAULT_TIMEOUT,
    NOT_CONFIGURED,
    DeliveryOutcome,
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

PLATFORM = "wechat"
DEFAULT_TITLE = "通知"


class WeChatNotifier:
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
        parts = [
            f"### {emoji_for(notification.level)} {title}",
            notification.message,
        ]
        lines = metadata_lines(notification.metadata, '> {key}: <font color="info">{value}</font>')
        if lines:
            parts.append("---\n**元数据**:\n" + "\n".join(lines))
        parts.append(f'---\n<font color="comment">🕐 {china_now()}</font>')

        return {"msgtype": "markdown", "markdown": {"content": "\n\n".join(parts)}}

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
            logger.warning("notify.wechat.transport_failed", target=mask_url(self._webhook_url), error=str(e))
            return failure(PLATFORM, transport_error(e))

        if is_zero(data.get("errcode")):
            logger.info("notify.wechat.sent", target=mask_url(self._webhook_url))
            return DeliveryOutcome(platform=PLATFORM, success=True)

        logger.warning("notify.wechat.rejected", detail=data)
        return failure(PLATFORM, data.get("errmsg"))
