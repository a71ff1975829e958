import json

import httpx
import pytest

from codebell.config import Settings

FEISHU_URL = "https://open.feishu.cn/open-apis/bot/v2/hook/feishu-hook"
DINGTALK_URL = "https://oapi.dingtalk.com/robot/send?access_token=ding-token"
WECHAT_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send?key=wecom-key"
TELEGRAM_TOKEN = "123456:ABC-DEF"
TELEGRAM_CHAT_ID = "-100200300"

HOST_TO_PLATFORM = {
    "open.feishu.cn": "feishu",
    "oapi.dingtalk.com": "dingtalk",
    "qyapi.weixin.qq.com": "wechat",
    "api.telegram.org": "telegram",
}

SUCCESS_REPLIES = {
    "feishu": {"code": 0, "msg": "success"},
    "dingtalk": {"errcode": 0, "errmsg": "ok"},
    "wechat": {"errcode": 0, "errmsg": "ok"},
    "telegram": {"ok": True, "result": {"message_id": 42}},
}


class StubBackend:
    """Fake chat backends behind an httpx.MockTransport.

    Records every request; replies with SUCCESS_REPLIES unless a platform's
    entry in `replies` is overridden with a dict, an httpx.Response, or an
    exception to raise.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.replies: dict = dict(SUCCESS_REPLIES)
        self.transport = httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies[HOST_TO_PLATFORM[request.url.host]]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def requests_for(self, platform: str) -> list[httpx.Request]:
        return [r for r in self.requests if HOST_TO_PLATFORM[r.url.host] == platform]

    def payload(self, platform: str) -> dict:
        return json.loads(self.requests_for(platform)[-1].content)


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def full_settings() -> Settings:
    return Settings(
        _env_file=None,
        FEISHU_WEBHOOK_URL=FEISHU_URL,
        DINGTALK_WEBHOOK_URL=DINGTALK_URL,
        DINGTALK_SECRET="SEC-dingtalk",
        WECHAT_WEBHOOK_URL=WECHAT_URL,
        TELEGRAM_BOT_TOKEN=TELEGRAM_TOKEN,
        TELEGRAM_CHAT_ID=TELEGRAM_CHAT_ID,
    )


@pytest.fixture
def empty_settings() -> Settings:
    return Settings(
        _env_file=None,
        FEISHU_WEBHOOK_URL="",
        DINGTALK_WEBHOOK_URL="",
        DINGTALK_SECRET="",
        WECHAT_WEBHOOK_URL="",
        TELEGRAM_BOT_TOKEN="",
        TELEGRAM_CHAT_ID="",
    )
