"""Tests for the MCP tool layer."""

from unittest.mock import patch

import pytest

from codebell import server
from codebell.dispatcher import Dispatcher


@pytest.fixture
def stub_dispatcher(full_settings, backend):
    dispatcher = Dispatcher.from_settings(full_settings, transport=backend.transport)
    with patch.object(server, "dispatcher", dispatcher):
        yield dispatcher


@pytest.mark.asyncio
async def test_tools_are_registered():
    tools = await server.mcp.list_tools()
    assert {t.name for t in tools} == {
        "send_notification",
        "notify_task_complete",
        "notify_milestone",
        "check_notification_config",
    }


@pytest.mark.asyncio
async def test_send_notification_renders_result(stub_dispatcher, backend):
    backend.replies["telegram"] = {"ok": False, "description": "Forbidden: bot was blocked by the user"}
    text = await server.send_notification(
        message="Deploy finished",
        title="Deploy",
        level="success",
        platforms=["feishu", "telegram"],
    )
    assert text.splitlines() == [
        "1/2 platform(s) notified",
        "",
        "feishu: ✓ Success",
        "telegram: ✗ Failed - Forbidden: bot was blocked by the user",
    ]


@pytest.mark.asyncio
async def test_send_notification_defaults_to_all(stub_dispatcher, backend):
    text = await server.send_notification(message="hi")
    assert text.startswith("4/4 platform(s) notified")
    assert len(backend.requests) == 4


@pytest.mark.asyncio
async def test_send_notification_rejects_empty_message(stub_dispatcher):
    with pytest.raises(ValueError):
        await server.send_notification(message="")


@pytest.mark.asyncio
async def test_notify_task_complete_tool(stub_dispatcher, backend):
    text = await server.notify_task_complete(task_name="Build", summary="done")
    assert text.startswith("4/4 platform(s) notified")
    assert backend.payload("dingtalk")["markdown"]["title"] == "✅ 任务完成: Build"


@pytest.mark.asyncio
async def test_notify_milestone_tool(stub_dispatcher, backend):
    text = await server.notify_milestone(milestone="Beta", progress="80%", platforms=["dingtalk"])
    assert text.startswith("1/1 platform(s) notified")


def test_check_config_report(empty_settings):
    settings = empty_settings.model_copy(update={"WECHAT_WEBHOOK_URL": "https://qyapi.weixin.qq.com/x"})
    with patch.object(server, "dispatcher", Dispatcher.from_settings(settings)):
        text = server.check_notification_config()
    assert "✅ **已配置** (1): wechat" in text
    assert "⚠️ **未配置** (3): feishu, dingtalk, telegram" in text


def test_render_config_status_none_configured():
    text = server.render_config_status({"feishu": False})
    assert "✅ **已配置** (0): 无" in text
