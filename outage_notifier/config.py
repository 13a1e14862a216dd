from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Database
    database_url: str = Field(default="sqlite:///./outage_notifier.db")

    # Monitored address (one per instance)
    city: str = Field(default="")
    street: str = Field(default="")
    house: str = Field(default="")
    timezone: str = Field(default="Europe/Kyiv")

    # Provider document source. source_file wins when set (captured JSON).
    source_url: str = Field(default="https://www.dtek-krem.com.ua/ua/ajax")
    source_file: str = Field(default="")
    source_timeout_seconds: float = Field(default=30.0)

    # Telegram delivery
    telegram_bot_token: str = Field(default="")
    telegram_chat_id: str = Field(default="")
    telegram_api_url: str = Field(default="https://api.telegram.org")
    delivery_max_attempts: int = Field(default=3)
    delivery_retry_backoff_seconds: float = Field(default=2.0)

    # Scheduler
    scheduler_enabled: bool = Field(default=True)
    poll_interval: int = Field(default=5)  # minutes
    daily_summary_enabled: bool = Field(default=True)
    daily_summary_hour: int = Field(default=7)
    daily_summary_minute: int = Field(default=0)

    # Decision engine
    resend_suppression_minutes: int = Field(default=10)
    emergency_policy: str = Field(default="any_field")
    merge_policy: str = Field(default="standard")
    history_max_entries: int = Field(default=50)


settings = Settings()
