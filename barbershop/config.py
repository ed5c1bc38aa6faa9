# barbershop/config.py

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(default="sqlite:///./barber.db", alias="DATABASE_URL")
    secret_key: str = Field(default="change-me-later", alias="SECRET_KEY")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    business_timezone: str = Field(default="Europe/Berlin", alias="BUSINESS_TIMEZONE")
    booking_buffer_minutes: int = Field(default=5, ge=0, alias="BOOKING_BUFFER_MINUTES")
    max_duration_minutes: int = Field(default=480, gt=0, alias="MAX_DURATION_MINUTES")
    weekly_limit_days: int = Field(default=7, gt=0, alias="WEEKLY_LIMIT_DAYS")
    no_show_block_threshold: int = Field(default=2, gt=0, alias="NO_SHOW_BLOCK_THRESHOLD")
    slot_step_minutes: int = Field(default=15, gt=0, alias="SLOT_STEP_MINUTES")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache
def get_settings() -> Settings:
    return Settings()
