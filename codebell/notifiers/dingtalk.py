"""
DingTalk custom robot: markdown message via webhook.

When the robot uses the "signature" security setting, every request URL must
carry timestamp + sign query params (see sign_url).
Reply shape: {"errcode": 0, "errmsg": "ok"} on success.
"""

import base64
import hashlib
import hmac
import time
from urllib.parse import quote

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

PLATFORM = "dingtalk"
DEFAULT_TITLE = "通知"


def compute_signature(secret: str, timestamp: int) -> str:
    """base64(HMAC-SHA256(key=secret, msg="{timestamp}\\n{secret}"))."""
    string_to_sign = f"{timestamp}\n{secret}"
    digest = hmac.new(
        secret.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


def sign_url(webhook_url: str, secret: str, timestamp: int | None = None) -> str:
    """Append timestamp and URL-encoded sign to the webhook URL.

    The timestamp (unix millis) in the query is the one that was signed.
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    sign = quote(compute_signature(secret, timestamp), safe="")
    sep = "&" if "?" in webhook_url else "?"
    return f"{webhook_url}{sep}timestamp={timestamp}&sign={sign}"


class DingTalkNotifier:
    platform = PLATFORM

    def __init__(
        self,
        webhook_url: str = "",
        secret: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._webhook_url = webhook_url
        self._secret = secret
        self._timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        # The secret only switches signing on; it is not required
        return bool(self._webhook_url)

    def request_url(self) -> str:
        if not self._secret:
            return self._webhook_url
        return sign_url(self._webhook_url, self._secret)

    def build_payload(self, notification: Notification) -> dict:
        title = notification.title or DEFAULT_TITLE
        parts = [
            f"### {emoji_for(notification.level)} {title}",
            notification.message,
        ]
        lines = metadata_lines(notification.metadata, "- **{key}**: {value}")
        if lines:
            parts.append("---\n**元数据**:\n" + "\n".join(lines))
        parts.append(f"---\n> 🕐 {china_now()}")

        return {
            "msgtype": "markdown",
            "markdown": {"title": title, "text": "\n\n".join(parts)},
        }

    async def send(self, notification: Notification) -> DeliveryOutcome:
        if not self.is_configured():
            return failure(PLATFORM, NOT_CONFIGURED)

        try:
            data = await post_json(
                self.request_url(),
                self.build_payload(notification),
                timeout=self._timeout,
                transport=self._transport,
            )
        except httpx.HTTPError as e:
            logger.warning("notify.dingtalk.transport_failed", target=mask_url(self._webhook_url), error=str(e))
            return failure(PLATFORM, transport_error(e))

        if is_zero(data.get("errcode")):
            logger.info("notify.dingtalk.sent", target=mask_url(self._webhook_url), signed=bool(self._secret))
            return DeliveryOutcome(platform=PLATFORM, success=True)

        logger.warning("notify.dingtalk.rejected", detail=data)
        return failure(PLATFORM, data.get("errmsg"))
