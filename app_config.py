from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Bitespeed Contact Reconciliation API", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    database_path: str = Field(default="contacts.db", alias="DATABASE_PATH")
    merge_policy: Literal["email_side", "oldest_primary"] = Field(default="email_side", alias="MERGE_POLICY")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
