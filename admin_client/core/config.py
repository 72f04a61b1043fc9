from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = "dev"
    app_name: str = "Challenge Admin Client"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True

    api_base_url: str = "http://localhost:8000/"
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    token_refresh_path: str = "users/token/refresh/"

    flash_ttl_seconds: float = Field(default=3.2, gt=0)
    report_flash_ttl_seconds: float = Field(default=2.5, gt=0)
    report_progress_ttl_seconds: float = Field(default=2.0, gt=0)

    group_min_members: int = 2
    group_max_members: int = 10

    @property
    def normalized_base_url(self) -> str:
        if self.api_base_url.endswith("/"):
            return self.api_base_url
        return self.api_base_url + "/"


@lru_cache
def get_settings() -> Settings:
    return Settings()
