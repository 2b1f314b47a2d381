"""
Application configuration loaded from environment variables.
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./lunacal.db"

    # Storage API (client side)
    api_base_url: str = "http://localhost:8000/api"
    request_timeout: float = 10.0

    # Local calendar day boundaries; None uses the host timezone
    timezone: Optional[str] = None

    # Reminder polling
    reminder_poll_interval_seconds: float = 60.0
    reminder_lookahead_minutes: int = 5

    # Supported range of the lunisolar tables
    lunar_min_year: int = 1900
    lunar_max_year: int = 2100

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "LUNACAL_"
        extra = "ignore"


settings = Settings()
