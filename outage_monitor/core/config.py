"""
Configuration settings for the outage monitor
"""

from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """Application settings"""

    # Database
    database_url: str = "sqlite:///./outage_monitor.db"

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_key: Optional[str] = None
    cors_origin: str = "*"
    debug: bool = False

    # Telegram
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    telegram_api_url: str = "https://api.telegram.org"

    # Outage schedule
    outage_group: str = ""
    timezone: str = "Europe/Kyiv"
    schedule_feed_url: str = "https://raw.githubusercontent.com/Baskerville42/outage-data-ua/refs/heads/main/data/kyiv-region.json"
    schedule_refresh_minutes: int = 5
    http_timeout: int = 30  # seconds

    # Device monitoring
    stale_threshold_seconds: int = 300  # 5 minutes
    outage_start_from_last_ping: bool = True
    tick_interval_seconds: int = 60

    # Weekly chart
    chart_update_minutes: int = 10
    chart_width_px: int = 1440
    chart_device_id: Optional[str] = None  # None charts outages of every device

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Hosted Postgres URLs use the legacy scheme SQLAlchemy no longer accepts
        if self.database_url.startswith("postgres://"):
            self.database_url = self.database_url.replace("postgres://", "postgresql://", 1)

    @property
    def stale_threshold_ms(self) -> int:
        return self.stale_threshold_seconds * 1000

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

# Global settings instance
settings = Settings()
