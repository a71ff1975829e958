"""
Notification dispatcher — fan one notification out to the selected platforms.

Targets are resolved once up front ("all" wins over explicit entries, unknown
ids are dropped), every selected notifier runs concurrently, and whatever one
notifier raises is turned into a failed outcome for that platform only.
"""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

import httpx
import structlog

from codebell.config import Settings
from codebell.notifiers import (
    DeliveryOutcome,
    DingTalkNotifier,
    FeishuNotifier,
    Level,
    Notification,
    Notifier,
    TelegramNotifier,
    WeChatNotifier,
)
from codebell.result import DispatchResult, aggregate

logger = structlog.get_logger()

PLATFORMS = ("feishu", "dingtalk", "wechat", "telegram")
ALL = "all"

FOOTER = "---\n🤖 由 AI 助手自动发送"


def resolve_targets(targets: Iterable[str] | None, known: Iterable[str] = PLATFORMS) -> list[str]:
    """Expand a target selection into the ordered list of platforms to notify.

    None means "all"; an empty selection resolves to no platforms.
    """
    known = tuple(known)
    requested = [ALL] if targets is None else list(targets)
    if ALL in requested:
        return list(known)

    resolved = []
    for target in requested:
        if target not in known:
            logger.warning("notify.unknown_target", target=target)
            continue
        resolved.append(target)
    return resolved


def task_complete_notification(
    task_name: str,
    summary: str,
    duration: str | None = None,
    details: str | None = None,
) -> Notification:
    lines = ["📋 **任务完成**", "", f"**任务名称**: {task_name}"]
    if duration:
        lines.append(f"**耗时**: {duration}")
    lines += ["", f"**摘要**: {summary}"]
    if details:
        lines += ["", f"**详情**: {details}"]
    lines += ["", FOOTER]

    metadata: dict[str, Any] = {"taskName": task_name}
    if duration:
        metadata["duration"] = duration
    metadata["type"] = "task_complete"

    return Notification(
        title=f"✅ 任务完成: {task_name}",
        message="\n".join(lines),
        level=Level.SUCCESS,
        metadata=metadata,
    )


def milestone_notification(
    milestone: str,
    progress: str,
    next_steps: str | None = None,
) -> Notification:
    lines = ["🎯 **里程碑达成**", "", f"**里程碑**: {milestone}", f"**进度**: {progress}"]
    if next_steps:
        lines += ["", f"**下一步**: {next_steps}"]
    lines += ["", FOOTER]

    return Notification(
        title=f"🎯 里程碑: {milestone}",
        message="\n".join(lines),
        level=Level.INFO,
        metadata={"milestone": milestone, "progress": progress, "type": "milestone"},
    )


class Dispatcher:
    """Routes notifications to a fixed table of platform id -> notifier."""

    def __init__(self, notifiers: Mapping[str, Notifier]):
        self._notifiers = dict(notifiers)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "Dispatcher":
        """Build all four notifiers from credentials captured at startup."""
        timeout = settings.NOTIFY_TIMEOUT_SECONDS
        return cls({
            "feishu": FeishuNotifier(
                settings.FEISHU_WEBHOOK_URL, timeout=timeout, transport=transport
            ),
            "dingtalk": DingTalkNotifier(
                settings.DINGTALK_WEBHOOK_URL,
                settings.DINGTALK_SECRET,
                timeout=timeout,
                transport=transport,
            ),
            "wechat": WeChatNotifier(
                settings.WECHAT_WEBHOOK_URL, timeout=timeout, transport=transport
            ),
            "telegram": TelegramNotifier(
                settings.TELEGRAM_BOT_TOKEN,
                settings.TELEGRAM_CHAT_ID,
                api_base=settings.TELEGRAM_API_BASE,
                timeout=timeout,
                transport=transport,
            ),
        })

    @property
    def platforms(self) -> list[str]:
        return [p for p in PLATFORMS if p in self._notifiers]

    def check_configuration(self) -> dict[str, bool]:
        return {p: self._notifiers[p].is_configured() for p in self.platforms}

    async def dispatch(
        self,
        notification: Notification,
        targets: Iterable[str] | None = None,
    ) -> DispatchResult:
        """Send to every resolved platform concurrently.

        Returns:
            DispatchResult with one outcome per resolved platform, in
            resolution order regardless of completion order.
        """
        platforms = resolve_targets(targets, self.platforms)
        log = logger.bind(platforms=platforms, level=notification.level.value)
        log.info("notify.dispatch.start")

        results = await asyncio.gather(
            *(self._notifiers[p].send(notification) for p in platforms),
            return_exceptions=True,
        )

        outcomes = []
        for platform, result in zip(platforms, results):
            if isinstance(result, Exception):
                log.error(
                    "notify.dispatch.notifier_crashed",
                    platform=platform,
                    exc_info=result,
                )
                result = DeliveryOutcome(
                    platform=platform,
                    success=False,
                    error=str(result) or result.__class__.__name__,
                )
            elif isinstance(result, BaseException):
                # Cancellation and interpreter exits are not delivery failures
                raise result
            outcomes.append(result)

        dispatch_result = aggregate(outcomes)
        log.info(
            "notify.dispatch.done",
            succeeded=dispatch_result.succeeded,
            total=dispatch_result.total,
        )
        return dispatch_result

    async def notify_task_complete(
        self,
        task_name: str,
        summary: str,
        duration: str | None = None,
        details: str | None = None,
        targets: Iterable[str] | None = None,
    ) -> DispatchResult:
        notification = task_complete_notification(task_name, summary, duration, details)
        return await self.dispatch(notification, targets)

    async def notify_milestone(
        self,
        milestone: str,
        progress: str,
        next_steps: str | None = None,
        targets: Iterable[str] | None = None,
    ) -> DispatchResult:
        notification = milestone_notification(milestone, progress, next_steps)
        return await self.dispatch(notification, targets)
