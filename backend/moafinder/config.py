from datetime import date, datetime
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/moafinder.db"

    # Auth
    secret_key: str = "dev-secret-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]

    # Schedules
    default_horizon_days: int = 90
    max_horizon_days: int = 730
    archive_expired_events: bool = True
    timezone: str = "Europe/Berlin"

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url

    def today(self) -> date:
        """Current calendar date in the directory's local timezone."""
        return datetime.now(ZoneInfo(self.timezone)).date()
