"""CodeBell: fan out one notification to Feishu, DingTalk, WeCom and Telegram."""

__version__ = "1.0.0"
