"""MCP server exposing the notification dispatcher as tools over stdio."""

import sys
from typing import Annotated, Any, Literal

import structlog
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from codebell.config import settings
from codebell.dispatcher import Dispatcher
from codebell.notifiers import Notification

logger = structlog.get_logger()

Target = Literal["feishu", "dingtalk", "wechat", "telegram", "all"]
Targets = Annotated[
    list[Target] | None,
    Field(description="Target platforms. Use 'all' to send to every platform (default)."),
]

mcp = FastMCP("codebell")

# Credentials are read once here and handed to the notifiers
dispatcher = Dispatcher.from_settings(settings)


def configure_logging():
    # stdout carries the MCP protocol, so logs go to stderr
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.dev.ConsoleRenderer()
                if settings.APP_ENV == "development"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


@mcp.tool()
async def send_notification(
    message: Annotated[str, Field(description="Notification message content")],
    title: Annotated[str | None, Field(description="Notification title")] = None,
    level: Annotated[
        Literal["info", "success", "warning", "error"],
        Field(description="Notification level/severity"),
    ] = "info",
    metadata: Annotated[
        dict[str, Any] | None,
        Field(description="Additional metadata (task name, duration, etc.)"),
    ] = None,
    platforms: Targets = None,
) -> str:
    """Send a notification to one or multiple platforms (Feishu, DingTalk, WeChat, Telegram).

    Use this when you complete a task, reach a milestone, or need to notify the user.
    """
    notification = Notification(message=message, title=title, level=level, metadata=metadata)
    result = await dispatcher.dispatch(notification, platforms)
    return result.render()


@mcp.tool()
async def notify_task_complete(
    task_name: Annotated[str, Field(description="Name of the completed task")],
    summary: Annotated[str, Field(description="Brief summary of what was accomplished")],
    duration: Annotated[
        str | None, Field(description="Time taken to complete the task (e.g. '5 minutes')")
    ] = None,
    details: Annotated[
        str | None, Field(description="Detailed information about the task completion")
    ] = None,
    platforms: Targets = None,
) -> str:
    """Notify the user that a specific task has been completed."""
    result = await dispatcher.notify_task_complete(
        task_name, summary, duration=duration, details=details, targets=platforms
    )
    return result.render()


@mcp.tool()
async def notify_milestone(
    milestone: Annotated[str, Field(description="Milestone name or description")],
    progress: Annotated[
        str, Field(description="Progress percentage or status (e.g. '50%' or '3/5 tasks')")
    ],
    next_steps: Annotated[str | None, Field(description="What comes next")] = None,
    platforms: Targets = None,
) -> str:
    """Notify the user about reaching a project milestone or important checkpoint."""
    result = await dispatcher.notify_milestone(
        milestone, progress, next_steps=next_steps, targets=platforms
    )
    return result.render()


def render_config_status(status: dict[str, bool]) -> str:
    configured = [p for p, ok in status.items() if ok]
    missing = [p for p, ok in status.items() if not ok]
    return "\n".join([
        "📊 **通知配置状态**",
        "",
        f"✅ **已配置** ({len(configured)}): {', '.join(configured) or '无'}",
        "",
        f"⚠️ **未配置** ({len(missing)}): {', '.join(missing) or '无'}",
        "",
        "提示: 在环境变量中配置 Webhook URL 来启用通知平台",
    ])


@mcp.tool()
def check_notification_config() -> str:
    """Check which notification platforms are currently configured and available."""
    return render_config_status(dispatcher.check_configuration())


def main():
    configure_logging()
    logger.info("app.startup", env=settings.APP_ENV, configured=dispatcher.check_configuration())
    mcp.run()
    logger.info("app.shutdown")


if __name__ == "__main__":
    main()
