from codebell.notifiers.base import DeliveryOutcome, Level, Notification, Notifier
from codebell.notifiers.dingtalk import DingTalkNotifier
from codebell.notifiers.feishu import FeishuNotifier
from codebell.notifiers.telegram import TelegramNotifier
from codebell.notifiers.wechat import WeChatNotifier

__all__ = [
    "Notification",
    "Level",
    "DeliveryOutcome",
    "Notifier",
    "FeishuNotifier",
    "DingTalkNotifier",
    "WeChatNotifier",
    "TelegramNotifier",
]
