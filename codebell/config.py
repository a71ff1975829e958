from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    APP_ENV: str = "development"

    # Outbound delivery
    NOTIFY_TIMEOUT_SECONDS: float = 5.0

    # Feishu custom bot
    FEISHU_WEBHOOK_URL: str = ""

    # DingTalk custom robot (secret enables signed URLs)
    DINGTALK_WEBHOOK_URL: str = ""
    DINGTALK_SECRET: str = ""

    # WeCom group robot
    WECHAT_WEBHOOK_URL: str = ""

    # Telegram bot
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""
    TELEGRAM_API_BASE: str = "https://api.telegram.org"


settings = Settings()
