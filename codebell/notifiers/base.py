"""
Shared notifier contract and helpers.

Every backend module exposes a class satisfying the `Notifier` protocol:
- is_configured(): pure check over the credentials given to the constructor
- send(notification): render, sign if needed, POST once, interpret the reply
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Protocol
from zoneinfo import ZoneInfo

import httpx
import structlog

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 5.0  # seconds
NOT_CONFIGURED = "platform not configured"
UNKNOWN_ERROR = "Unknown error"
CHINA_TZ = ZoneInfo("Asia/Shanghai")


class Level(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


LEVEL_EMOJI = {
    Level.INFO: "ℹ️",
    Level.SUCCESS: "✅",
    Level.WARNING: "⚠️",
    Level.ERROR: "❌",
}


@dataclass(frozen=True)
class Notification:
    message: str
    title: str | None = None
    level: Level = Level.INFO
    metadata: Mapping[str, Any] | None = field(default=None, hash=False)

    def __post_init__(self):
        if not self.message or not self.message.strip():
            raise ValueError("Notification message must not be empty")
        # Accept plain strings such as "warning" from callers
        object.__setattr__(self, "level", Level(self.level))
        # Snapshot so later edits to the caller's dict do not leak in
        if self.metadata is not None:
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True)
class DeliveryOutcome:
    platform: str  # e.g. "feishu"
    success: bool
    error: str | None = None
    message_id: str | None = None  # only Telegram returns one


class Notifier(Protocol):
    platform: str

    def is_configured(self) -> bool: ...

    async def send(self, notification: Notification) -> DeliveryOutcome: ...


def emoji_for(level: Level) -> str:
    return LEVEL_EMOJI.get(level, LEVEL_EMOJI[Level.INFO])


def metadata_lines(metadata: Mapping[str, Any] | None, fmt: str = "{key}: {value}") -> list[str]:
    """Flatten metadata into one display line per entry, keeping insertion order."""
    if not metadata:
        return []
    return [fmt.format(key=key, value=value) for key, value in metadata.items()]


def china_now() -> str:
    """Send time as shown by the Chinese backends (zh-CN style, Beijing time)."""
    return datetime.now(CHINA_TZ).strftime("%Y/%m/%d %H:%M:%S")


def failure(platform: str, error: str | None) -> DeliveryOutcome:
    return DeliveryOutcome(platform=platform, success=False, error=error or UNKNOWN_ERROR)


def mask_url(url: str) -> str:
    """Drop the query string (access tokens, signatures) before logging."""
    return url.split("?", 1)[0][:60]


async def post_json(
    url: str,
    payload: dict,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    """POST a JSON payload and return the decoded body.

    A body that is not a JSON object comes back as an empty dict so callers
    fall through to their "Unknown error" branch. Transport failures raise
    httpx.HTTPError. `timeout` bounds each httpx phase and also the request
    as a whole, so a slowly trickled reply cannot run past it.
    """
    try:
        async with asyncio.timeout(timeout):
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
    except TimeoutError:
        raise httpx.TimeoutException(f"Request timed out after {timeout}s") from None

    try:
        data = resp.json()
    except ValueError:
        logger.warning("notify.response_not_json", url=mask_url(url), status=resp.status_code)
        return {}
    return data if isinstance(data, dict) else {}


def transport_error(exc: Exception) -> str:
    # httpx timeouts can carry an empty message
    return str(exc) or exc.__class__.__name__


def is_zero(value: Any) -> bool:
    """Strict `== 0` for reply codes; JSON false is not a success code."""
    return value == 0 and not isinstance(value, bool)
