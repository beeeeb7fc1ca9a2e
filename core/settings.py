# -*- coding: utf-8 -*-

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_data_dir() -> Path:
    return Path.home() / ".config" / "smart-timer"


class Settings(BaseSettings):
    data_dir: Path = Field(default_factory=default_data_dir)
    db_filename: str = "smart_timer.db"
    snapshot_backend: Literal["sqlite", "json", "memory"] = "sqlite"
    snapshot_filename: str = "timer_session.json"

    log_level: str = "INFO"
    log_file: Optional[str] = None

    tick_interval_ms: int = Field(default=1000, gt=0)
    save_interval_seconds: float = Field(default=1.0, ge=0)
    reminder_delay_seconds: int = Field(default=180, ge=0)
    extend_minutes: int = Field(default=5, gt=0)
    desktop_notifications: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SMART_TIMER_",
        extra="ignore",
    )

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, value: Path) -> Path:
        return Path(value).expanduser()

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_filename


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
